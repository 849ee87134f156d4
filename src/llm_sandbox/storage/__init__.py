"""
Durable storage for the LLM Sandbox.

Only the append-only completion log lives here.
"""

from llm_sandbox.storage.completion_log import CompletionLogger, generate_id

__all__ = ["CompletionLogger", "generate_id"]
