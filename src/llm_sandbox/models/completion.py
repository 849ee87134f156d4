"""
Data models for chat completions, normalized stream events and log records.

Request and log models serialize with camelCase keys so browser clients and the
JSONL log share one wire shape.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageRole(str, Enum):
    """Enumeration of valid message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A message in a conversation, in the OpenAI chat format."""

    role: MessageRole = Field(description="Role of the message sender")
    content: str = Field(description="Message content")


class CompletionRequest(CamelModel):
    """
    Request body shared by the buffered and streaming completion endpoints.

    Exactly one of ``prompt`` or ``messages`` is the effective input;
    a non-empty ``messages`` list takes precedence.
    """

    prompt: str | None = Field(default=None, description="Single-shot user prompt")
    messages: list[ChatMessage] | None = Field(
        default=None, description="Conversation, optionally starting with a system message"
    )
    system_prompt: str | None = Field(default=None, description="System prompt override")
    max_tokens: int | None = Field(
        default=None,
        gt=0,
        description="Maximum tokens in the response (server default when omitted)",
    )
    model: str | None = Field(default=None, description="Model identifier override")
    stream: bool = Field(default=False, description="Informational; the path selects the mode")
    template: str | None = Field(default=None, description="Template tag recorded in the log")
    track_tokens: bool = Field(default=True, description="Record usage in the in-memory history")

    def log_prompt(self) -> str:
        """Return the text recorded as the prompt: the last user message, or the prompt."""
        if self.messages:
            user_messages = [m for m in self.messages if m.role == MessageRole.USER]
            return user_messages[-1].content if user_messages else ""
        return self.prompt or ""


class UsageSnapshot(BaseModel):
    """Token usage reported by a provider."""

    prompt_tokens: NonNegativeInt = Field(default=0, description="Number of input tokens")
    completion_tokens: NonNegativeInt = Field(default=0, description="Number of output tokens")
    total_tokens: NonNegativeInt = Field(default=0, description="Total tokens")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "UsageSnapshot":
        """Build a snapshot from a provider usage object, treating missing counts as zero."""
        return cls(
            prompt_tokens=payload.get("prompt_tokens") or 0,
            completion_tokens=payload.get("completion_tokens") or 0,
            total_tokens=payload.get("total_tokens") or 0,
        )


class NormalizedEvent(BaseModel):
    """
    Provider-agnostic unit relayed to stream consumers.

    Serializes as ``{"content": ..., "reasoning": ..., "usage": ... | null}``.
    """

    content: str = Field(default="", description="Content fragment")
    reasoning: str = Field(default="", description="Reasoning fragment")
    usage: UsageSnapshot | None = Field(default=None, description="Usage snapshot, if reported")

    def is_empty(self) -> bool:
        """True when the event carries nothing worth relaying."""
        return not self.content and not self.reasoning and self.usage is None


class CompletionResult(CamelModel):
    """Result of a buffered completion call."""

    content: str = Field(default="", description="Assistant message content")
    reasoning_content: str | None = Field(default=None, description="Reasoning channel, if any")
    usage: UsageSnapshot = Field(default_factory=UsageSnapshot, description="Token usage")
    model: str = Field(description="Model that produced the completion")
    raw: Any = Field(default=None, description="Raw provider response body")


class LogRecord(CamelModel):
    """One immutable line of the completion log."""

    id: str = Field(description="Unique record id (epoch millis + random suffix)")
    timestamp: str = Field(description="ISO-8601 UTC time the record was written")
    model: str = Field(description="Model used, as resolved by the provider when known")
    template: str | None = Field(default=None, description="Template tag supplied by the caller")
    prompt: str = Field(default="", description="Prompt or last user message")
    system_prompt: str | None = Field(default=None, description="System prompt override")
    max_tokens: int = Field(default=0, description="Maximum tokens requested")
    content: str = Field(default="", description="Full completion content")
    reasoning_content: str | None = Field(default=None, description="Full reasoning content")
    usage: UsageSnapshot = Field(default_factory=UsageSnapshot, description="Final usage")
    duration_ms: int = Field(default=0, description="Wall-clock duration in milliseconds")
    error: str | None = Field(default=None, description="Error message for failed requests")


class LogStats(CamelModel):
    """Aggregate view over the completion log."""

    total_requests: int = 0
    total_tokens: int = 0
    avg_duration_ms: int = 0
    by_template: dict[str, int] = Field(default_factory=dict)


class ModelInfo(BaseModel):
    """Entry of a provider's model catalogue."""

    id: str
    name: str
    tier: str


class TemplateRenderRequest(BaseModel):
    """Body of the template rendering endpoint."""

    name: str = Field(description="Template name (file stem)")
    variables: dict[str, str] = Field(default_factory=dict, description="Values for {{VAR}} slots")
