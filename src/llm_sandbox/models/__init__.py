"""
Data models for the LLM Sandbox.

Request/response shapes, normalized stream events and completion log records.
"""

from llm_sandbox.models.completion import (
    ChatMessage,
    CompletionRequest,
    CompletionResult,
    LogRecord,
    LogStats,
    MessageRole,
    ModelInfo,
    NormalizedEvent,
    TemplateRenderRequest,
    UsageSnapshot,
)

__all__ = [
    "ChatMessage",
    "CompletionRequest",
    "CompletionResult",
    "LogRecord",
    "LogStats",
    "MessageRole",
    "ModelInfo",
    "NormalizedEvent",
    "TemplateRenderRequest",
    "UsageSnapshot",
]
