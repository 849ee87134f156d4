"""
Unit tests for the provider clients.

Tests message assembly, request bodies per provider, credential and upstream
error handling, and frame parsing.
"""

import httpx
import pytest

from llm_sandbox.config import DEFAULT_SYSTEM_PROMPT, Settings
from llm_sandbox.models.completion import (
    ChatMessage,
    CompletionRequest,
    MessageRole,
    UsageSnapshot,
)
from llm_sandbox.providers import KimiProvider, OpenAIProvider, build_provider
from llm_sandbox.utils.errors import ConfigurationError, UnknownProviderError, UpstreamError
from tests.upstream_helper import FakeUpstream, content_frame, usage_payload


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def kimi(http_client: httpx.AsyncClient) -> KimiProvider:
    return KimiProvider(client=http_client, api_key="kimi-key", base_url="https://moonshot.test/v1/")


@pytest.fixture
def openai(http_client: httpx.AsyncClient) -> OpenAIProvider:
    return OpenAIProvider(client=http_client, api_key="openai-key", base_url="https://openai.test/v1")


def user(content: str) -> ChatMessage:
    return ChatMessage(role=MessageRole.USER, content=content)


class TestBuildMessages:
    """Test conversation assembly and system message synthesis."""

    def test_prompt_mode_wraps_prompt_with_default_system(self, kimi: KimiProvider) -> None:
        messages = kimi.build_messages(CompletionRequest(prompt="hello"))

        assert [m.role for m in messages] == [MessageRole.SYSTEM, MessageRole.USER]
        assert messages[0].content == DEFAULT_SYSTEM_PROMPT
        assert messages[1].content == "hello"

    def test_prompt_mode_uses_caller_system_prompt(self, kimi: KimiProvider) -> None:
        messages = kimi.build_messages(CompletionRequest(prompt="hello", system_prompt="Be terse."))
        assert messages[0].content == "Be terse."

    def test_missing_prompt_becomes_empty_user_message(self, kimi: KimiProvider) -> None:
        messages = kimi.build_messages(CompletionRequest())
        assert messages[1].content == ""

    def test_messages_without_system_get_one_prepended(self, openai: OpenAIProvider) -> None:
        conversation = [user("hi"), ChatMessage(role=MessageRole.ASSISTANT, content="hello"), user("more")]

        messages = openai.build_messages(
            CompletionRequest(messages=conversation, system_prompt="Custom system")
        )

        assert messages[0] == ChatMessage(role=MessageRole.SYSTEM, content="Custom system")
        assert messages[1:] == conversation

    def test_messages_with_leading_system_are_used_verbatim(self, openai: OpenAIProvider) -> None:
        conversation = [ChatMessage(role=MessageRole.SYSTEM, content="Mine"), user("hi")]

        messages = openai.build_messages(
            CompletionRequest(messages=conversation, system_prompt="ignored")
        )

        assert messages == conversation

    def test_messages_take_precedence_over_prompt(self, openai: OpenAIProvider) -> None:
        messages = openai.build_messages(CompletionRequest(prompt="ignored", messages=[user("used")]))

        assert [m.content for m in messages[1:]] == ["used"]

    def test_empty_messages_fall_back_to_prompt(self, openai: OpenAIProvider) -> None:
        messages = openai.build_messages(CompletionRequest(prompt="fallback", messages=[]))
        assert messages[-1].content == "fallback"


class TestBuildPayload:
    """Test provider-specific request bodies."""

    def test_kimi_fixes_temperature(self, kimi: KimiProvider) -> None:
        payload = kimi.build_payload(CompletionRequest(prompt="x"), stream=False)

        assert payload["temperature"] == 1
        assert payload["model"] == "kimi-k2.5"
        assert payload["max_tokens"] == 5000
        assert "stream" not in payload

    def test_openai_stream_requests_usage(self, openai: OpenAIProvider) -> None:
        payload = openai.build_payload(
            CompletionRequest(prompt="x", model="o3", max_tokens=10), stream=True
        )

        assert payload["stream"] is True
        assert payload["stream_options"] == {"include_usage": True}
        assert payload["model"] == "o3"
        assert payload["max_tokens"] == 10
        assert "temperature" not in payload

    def test_openai_buffered_payload_has_no_stream_options(self, openai: OpenAIProvider) -> None:
        payload = openai.build_payload(CompletionRequest(prompt="x"), stream=False)
        assert "stream_options" not in payload

    def test_messages_serialize_roles_as_strings(self, openai: OpenAIProvider) -> None:
        payload = openai.build_payload(CompletionRequest(prompt="x"), stream=False)
        assert payload["messages"][0] == {"role": "system", "content": DEFAULT_SYSTEM_PROMPT}


class TestComplete:
    """Test buffered completion calls."""

    @pytest.mark.asyncio
    async def test_complete_parses_response(self, kimi: KimiProvider, upstream: FakeUpstream) -> None:
        upstream.respond_json(
            200,
            {
                "model": "kimi-k2.5",
                "choices": [
                    {"message": {"role": "assistant", "content": "Hi", "reasoning_content": "thinking"}}
                ],
                "usage": usage_payload(3, 2),
            },
        )

        result = await kimi.complete(CompletionRequest(prompt="hello"))

        assert result.content == "Hi"
        assert result.reasoning_content == "thinking"
        assert result.usage == UsageSnapshot(prompt_tokens=3, completion_tokens=2, total_tokens=5)
        assert result.model == "kimi-k2.5"
        assert result.raw["choices"][0]["message"]["content"] == "Hi"

        request = upstream.requests[0]
        assert str(request.url) == "https://moonshot.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer kimi-key"

    @pytest.mark.asyncio
    async def test_complete_defaults_missing_fields(self, openai: OpenAIProvider, upstream: FakeUpstream) -> None:
        upstream.respond_json(200, {"choices": [{"message": {"content": None}}]})

        result = await openai.complete(CompletionRequest(prompt="hello", model="gpt-4.1-mini"))

        assert result.content == ""
        assert result.reasoning_content is None
        assert result.usage == UsageSnapshot()
        assert result.model == "gpt-4.1-mini"

    @pytest.mark.asyncio
    async def test_missing_credential_fails_before_network(
        self, http_client: httpx.AsyncClient, upstream: FakeUpstream
    ) -> None:
        provider = OpenAIProvider(client=http_client, api_key=None, base_url="https://openai.test/v1")

        with pytest.raises(ConfigurationError, match="Missing OPENAI_API_KEY"):
            await provider.complete(CompletionRequest(prompt="hello"))
        with pytest.raises(ConfigurationError, match="Missing OPENAI_API_KEY"):
            await provider.start_stream(CompletionRequest(prompt="hello"))

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_upstream_error_carries_status_and_body(
        self, openai: OpenAIProvider, upstream: FakeUpstream
    ) -> None:
        body = {"error": {"message": "invalid key", "type": "invalid_request_error"}}
        upstream.respond_json(401, body)

        with pytest.raises(UpstreamError) as exc_info:
            await openai.complete(CompletionRequest(prompt="hello"))

        assert exc_info.value.message == "invalid key"
        assert exc_info.value.status_code == 401
        assert exc_info.value.raw == body
        assert exc_info.value.provider == "openai"
        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_upstream_error_without_message_uses_status(
        self, kimi: KimiProvider, upstream: FakeUpstream
    ) -> None:
        upstream.respond(httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(UpstreamError) as exc_info:
            await kimi.complete(CompletionRequest(prompt="hello"))

        assert exc_info.value.message == "Kimi API error: 502"
        assert exc_info.value.raw == "Bad Gateway"


class TestStartStream:
    """Test opening streaming calls."""

    @pytest.mark.asyncio
    async def test_start_stream_returns_unread_response(
        self, openai: OpenAIProvider, upstream: FakeUpstream
    ) -> None:
        upstream.respond_sse(content_frame("Hi"))

        response = await openai.start_stream(CompletionRequest(prompt="hello"))
        try:
            body = b"".join([chunk async for chunk in response.aiter_bytes()])
        finally:
            await response.aclose()

        assert b'"content": "Hi"' in body
        assert upstream.payloads[0]["stream"] is True

    @pytest.mark.asyncio
    async def test_start_stream_raises_upstream_error(
        self, kimi: KimiProvider, upstream: FakeUpstream
    ) -> None:
        upstream.respond_json(429, {"error": {"message": "rate limited"}})

        with pytest.raises(UpstreamError, match="rate limited") as exc_info:
            await kimi.start_stream(CompletionRequest(prompt="hello"))

        assert exc_info.value.status_code == 429


class TestFrameParsing:
    """Test delta, usage and model extraction."""

    def test_kimi_parses_reasoning(self, kimi: KimiProvider) -> None:
        assert kimi.parse_delta(content_frame("a", reasoning="r")) == ("a", "r")

    def test_openai_ignores_reasoning_channel(self, openai: OpenAIProvider) -> None:
        assert openai.parse_delta(content_frame("a", reasoning="r")) == ("a", "")

    def test_frame_without_choices(self, openai: OpenAIProvider) -> None:
        frame = {"choices": [], "usage": usage_payload(1, 1)}

        assert openai.parse_delta(frame) == ("", "")
        assert openai.parse_usage(frame) == UsageSnapshot(
            prompt_tokens=1, completion_tokens=1, total_tokens=2
        )

    @pytest.mark.parametrize(
        "frame",
        [
            {"choices": [None]},
            {"choices": {"0": 1}},
            {"choices": [{"delta": ["content"]}]},
            {"choices": [{"delta": {"content": 42, "reasoning_content": False}}]},
        ],
    )
    def test_unexpected_shapes_yield_empty_fragments(self, kimi: KimiProvider, frame: dict) -> None:
        assert kimi.parse_delta(frame) == ("", "")

    def test_usage_absent_or_null(self, kimi: KimiProvider) -> None:
        assert kimi.parse_usage(content_frame("a")) is None
        assert kimi.parse_usage({"usage": None}) is None

    def test_partial_usage_defaults_to_zero(self, kimi: KimiProvider) -> None:
        usage = kimi.parse_usage({"usage": {"completion_tokens": 4}})
        assert usage == UsageSnapshot(prompt_tokens=0, completion_tokens=4, total_tokens=0)

    def test_only_openai_reports_model_in_band(self, kimi: KimiProvider, openai: OpenAIProvider) -> None:
        frame = content_frame("a", model="gpt-4.1-2025-04-14")

        assert openai.parse_model(frame) == "gpt-4.1-2025-04-14"
        assert kimi.parse_model(frame) is None


class TestBuildProvider:
    """Test the provider registry."""

    def test_builds_configured_providers(self) -> None:
        settings = Settings(
            moonshot_api_key="k",
            openai_api_key="o",
            openai_base="https://openai.test/v1/",
            default_max_tokens=123,
        )
        client = httpx.AsyncClient()

        kimi = build_provider("kimi", settings, client)
        openai = build_provider("openai", settings, client)

        assert isinstance(kimi, KimiProvider)
        assert kimi.api_key == "k"
        assert kimi.default_max_tokens == 123
        assert isinstance(openai, OpenAIProvider)
        assert openai.endpoint == "https://openai.test/v1/chat/completions"

    def test_unknown_provider(self) -> None:
        with pytest.raises(UnknownProviderError):
            build_provider("anthropic", Settings(), httpx.AsyncClient())
