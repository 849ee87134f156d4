"""
In-memory token usage history.

Keeps the most recent completions' token counts in a bounded ring buffer owned
by the application instance, and summarizes them for the /api/usage endpoint.
"""

from collections import deque
from datetime import datetime, timezone

from pydantic import BaseModel, Field, NonNegativeInt

from llm_sandbox.models.completion import UsageSnapshot
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

PROMPT_PREVIEW_LENGTH = 100


class UsageEntry(BaseModel):
    """Token usage of one completion."""

    timestamp: str = Field(description="ISO-8601 UTC time the usage was recorded")
    model: str = Field(description="Model that served the completion")
    prompt_tokens: NonNegativeInt
    completion_tokens: NonNegativeInt
    total_tokens: NonNegativeInt
    system_prompt: str | None = Field(default=None, serialization_alias="systemPrompt")
    prompt_preview: str = Field(serialization_alias="promptPreview")


class UsageSummary(BaseModel):
    total_calls: int = Field(serialization_alias="totalCalls")
    total_tokens: int = Field(serialization_alias="totalTokens")
    avg_tokens_per_call: int = Field(serialization_alias="avgTokensPerCall")


def preview(prompt: str, length: int = PROMPT_PREVIEW_LENGTH) -> str:
    return prompt[:length] + ("..." if len(prompt) > length else "")


class UsageTracker:
    """
    Bounded history of token usage.

    Entries beyond ``max_entries`` push out the oldest ones. One instance lives
    on the application state; nothing here is module-global.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._entries: deque[UsageEntry] = deque(maxlen=max_entries)

    def track(
        self,
        usage: UsageSnapshot,
        prompt: str,
        model: str,
        system_prompt: str | None = None,
    ) -> UsageEntry:
        """
        Record the usage of one completion.

        Args:
            usage: Final usage reported by the provider
            prompt: Prompt or last user message, stored as a short preview
            model: Model that served the completion
            system_prompt: System prompt override, if any

        Returns:
            The stored entry
        """
        entry = UsageEntry(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            model=model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            system_prompt=system_prompt,
            prompt_preview=preview(prompt),
        )
        self._entries.append(entry)

        logger.info(
            f"[{model}] {usage.total_tokens} tokens "
            f"({usage.prompt_tokens} in, {usage.completion_tokens} out)",
            extra={
                "model": model,
                "input_tokens": usage.prompt_tokens,
                "output_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            },
        )
        return entry

    def entries(self) -> list[UsageEntry]:
        return list(self._entries)

    def summary(self) -> UsageSummary:
        total_calls = len(self._entries)
        total_tokens = sum(e.total_tokens for e in self._entries)
        return UsageSummary(
            total_calls=total_calls,
            total_tokens=total_tokens,
            avg_tokens_per_call=round(total_tokens / total_calls) if total_calls else 0,
        )

    def clear(self) -> None:
        self._entries.clear()
