"""
Unit tests for the event normalizer and stream accumulator.
"""

import httpx
import pytest

from llm_sandbox.models.completion import NormalizedEvent, UsageSnapshot
from llm_sandbox.providers import KimiProvider, OpenAIProvider
from llm_sandbox.streaming.normalizer import StreamAccumulator, normalize_events
from tests.upstream_helper import content_frame, usage_payload


@pytest.fixture
def kimi() -> KimiProvider:
    return KimiProvider(client=httpx.AsyncClient(), api_key="k", base_url="https://moonshot.test/v1")


@pytest.fixture
def openai() -> OpenAIProvider:
    return OpenAIProvider(client=httpx.AsyncClient(), api_key="o", base_url="https://openai.test/v1")


async def frames_of(*frames: dict):
    for frame in frames:
        yield frame


async def collect(frames, provider, accumulator) -> list[NormalizedEvent]:
    return [event async for event in normalize_events(frames, provider, accumulator)]


class TestNormalizeEvents:
    """Test event emission and accumulation."""

    @pytest.mark.asyncio
    async def test_content_and_usage_frames(self, openai: OpenAIProvider) -> None:
        accumulator = StreamAccumulator(model_used="gpt-4.1")
        usage = usage_payload(3, 2)

        events = await collect(
            frames_of(content_frame("Hi"), content_frame(" there", usage=usage)),
            openai,
            accumulator,
        )

        assert events == [
            NormalizedEvent(content="Hi", reasoning="", usage=None),
            NormalizedEvent(content=" there", reasoning="", usage=UsageSnapshot(**usage)),
        ]
        assert accumulator.full_content == "Hi there"
        assert accumulator.final_usage == UsageSnapshot(**usage)
        assert accumulator.event_count == 2

    @pytest.mark.asyncio
    async def test_empty_frames_emit_nothing(self, kimi: KimiProvider) -> None:
        accumulator = StreamAccumulator(model_used="kimi-k2.5")
        role_only = {"choices": [{"delta": {"role": "assistant"}}]}

        events = await collect(
            frames_of(role_only, content_frame(""), {"id": "x"}, content_frame("a")),
            kimi,
            accumulator,
        )

        assert [e.content for e in events] == ["a"]
        assert all(not e.is_empty() for e in events)

    @pytest.mark.asyncio
    async def test_reasoning_accumulates_separately(self, kimi: KimiProvider) -> None:
        accumulator = StreamAccumulator(model_used="kimi-k2.5")

        events = await collect(
            frames_of(
                content_frame(reasoning="Let me "),
                content_frame(reasoning="think."),
                content_frame("Answer"),
            ),
            kimi,
            accumulator,
        )

        assert [(e.content, e.reasoning) for e in events] == [
            ("", "Let me "),
            ("", "think."),
            ("Answer", ""),
        ]
        assert accumulator.full_reasoning == "Let me think."
        assert accumulator.full_content == "Answer"

    @pytest.mark.asyncio
    async def test_last_usage_wins(self, kimi: KimiProvider) -> None:
        accumulator = StreamAccumulator(model_used="kimi-k2.5")

        await collect(
            frames_of(
                content_frame("a", usage=usage_payload(3, 1)),
                content_frame("b", usage=usage_payload(3, 2)),
                {"choices": [], "usage": usage_payload(3, 7)},
            ),
            kimi,
            accumulator,
        )

        assert accumulator.final_usage.total_tokens == 10

    @pytest.mark.asyncio
    async def test_usage_stays_zero_when_never_reported(self, kimi: KimiProvider) -> None:
        accumulator = StreamAccumulator(model_used="kimi-k2.5")

        await collect(frames_of(content_frame("a")), kimi, accumulator)

        assert accumulator.final_usage == UsageSnapshot()

    @pytest.mark.asyncio
    async def test_in_band_model_is_captured(self, openai: OpenAIProvider) -> None:
        accumulator = StreamAccumulator(model_used="gpt-4.1")

        await collect(
            frames_of(
                {"model": "gpt-4.1-2025-04-14", "choices": [{"delta": {"role": "assistant"}}]},
                content_frame("a", model="gpt-4.1-2025-04-14"),
            ),
            openai,
            accumulator,
        )

        assert accumulator.model_used == "gpt-4.1-2025-04-14"

    @pytest.mark.asyncio
    async def test_kimi_model_echo_is_ignored(self, kimi: KimiProvider) -> None:
        accumulator = StreamAccumulator(model_used="kimi-k2.5")

        await collect(frames_of(content_frame("a", model="something-else")), kimi, accumulator)

        assert accumulator.model_used == "kimi-k2.5"


def test_normalized_event_serialization() -> None:
    event = NormalizedEvent(content="Hi")
    assert event.model_dump() == {"content": "Hi", "reasoning": "", "usage": None}
