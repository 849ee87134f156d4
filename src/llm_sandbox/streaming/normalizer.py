"""
Normalization of provider frames into provider-agnostic stream events.
"""

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from llm_sandbox.models.completion import NormalizedEvent, UsageSnapshot
from llm_sandbox.providers.base import ChatProvider
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class StreamAccumulator:
    """Running totals of one streaming request. Owned by a single relay."""

    model_used: str
    full_content: str = ""
    full_reasoning: str = ""
    final_usage: UsageSnapshot = field(default_factory=UsageSnapshot)
    event_count: int = 0

    def apply(self, event: NormalizedEvent, model: str | None = None) -> None:
        self.full_content += event.content
        self.full_reasoning += event.reasoning
        # Last usage object wins, whether the provider sends one or many
        if event.usage is not None:
            self.final_usage = event.usage
        if model:
            self.model_used = model
        self.event_count += 1


def normalize_frame(provider: ChatProvider, frame: dict[str, Any]) -> NormalizedEvent:
    content, reasoning = provider.parse_delta(frame)
    return NormalizedEvent(content=content, reasoning=reasoning, usage=provider.parse_usage(frame))


async def normalize_events(
    frames: AsyncIterable[dict[str, Any]],
    provider: ChatProvider,
    accumulator: StreamAccumulator,
) -> AsyncIterator[NormalizedEvent]:
    """
    Map parsed frames to normalized events, updating ``accumulator`` as they pass.

    Frames that carry no content, reasoning or usage update nothing but the
    in-band model and produce no event. Frames whose fields fail validation
    (e.g. negative token counts) are dropped.
    """
    async for frame in frames:
        try:
            event = normalize_frame(provider, frame)
        except ValidationError as exc:
            logger.debug(
                "Skipping invalid stream frame",
                extra={"provider": provider.name, "error_count": exc.error_count()},
            )
            continue
        model = provider.parse_model(frame)

        if event.is_empty():
            if model:
                accumulator.model_used = model
            continue

        accumulator.apply(event, model)
        yield event
