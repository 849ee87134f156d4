"""
Base class for upstream chat-completion providers.

A provider knows how to build its request body, where to send it, and how to
read content, reasoning, usage and model fields out of its responses. The
stream relay only talks to this interface.
"""

from typing import Any, ClassVar

import httpx

from llm_sandbox.config import DEFAULT_SYSTEM_PROMPT
from llm_sandbox.models.completion import (
    ChatMessage,
    CompletionRequest,
    CompletionResult,
    MessageRole,
    ModelInfo,
    UsageSnapshot,
)
from llm_sandbox.utils.errors import ConfigurationError, UpstreamError
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)


def text_fragment(value: Any) -> str:
    """Return ``value`` if it is a string, otherwise an empty fragment."""
    return value if isinstance(value, str) else ""


class ChatProvider:
    """
    OpenAI-compatible chat completions client for one upstream provider.

    Subclasses set the class attributes and override the ``parse_*`` hooks or
    ``build_payload`` where the provider deviates from the OpenAI schema.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    api_key_env: ClassVar[str]
    default_model: ClassVar[str]
    models: ClassVar[tuple[ModelInfo, ...]] = ()

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        base_url: str,
        default_system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        default_max_tokens: int = 5000,
    ) -> None:
        """
        Initialize the provider.

        Args:
            client: Shared HTTP client used for every upstream call
            api_key: Provider credential, None when not configured
            base_url: Base URL of the provider API (without /chat/completions)
            default_system_prompt: System prompt synthesized for requests without one
            default_max_tokens: Maximum tokens when the request omits them
        """
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_system_prompt = default_system_prompt
        self.default_max_tokens = default_max_tokens

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def resolve_model(self, request: CompletionRequest) -> str:
        return request.model or self.default_model

    def resolve_max_tokens(self, request: CompletionRequest) -> int:
        return request.max_tokens or self.default_max_tokens

    def build_messages(self, request: CompletionRequest) -> list[ChatMessage]:
        """
        Assemble the conversation sent upstream.

        A non-empty ``messages`` list is used verbatim, with a system message
        prepended when the first message is not one. Otherwise the prompt is
        wrapped as ``[system, user]``.
        """
        system = ChatMessage(
            role=MessageRole.SYSTEM,
            content=(
                request.system_prompt
                if request.system_prompt is not None
                else self.default_system_prompt
            ),
        )

        if request.messages:
            if request.messages[0].role == MessageRole.SYSTEM:
                return list(request.messages)
            return [system, *request.messages]

        return [system, ChatMessage(role=MessageRole.USER, content=request.prompt or "")]

    def build_payload(self, request: CompletionRequest, stream: bool) -> dict[str, Any]:
        """Build the JSON body of a chat completion call."""
        payload: dict[str, Any] = {
            "model": self.resolve_model(request),
            "messages": [m.model_dump(mode="json") for m in self.build_messages(request)],
            "max_tokens": self.resolve_max_tokens(request),
        }
        if stream:
            payload["stream"] = True
        return payload

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ConfigurationError(f"Missing {self.api_key_env}")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _raise_for_status(self, response: httpx.Response) -> None:
        """Convert a non-success response into an UpstreamError carrying the raw body."""
        if response.is_success:
            return

        await response.aread()
        try:
            raw: Any = response.json()
        except ValueError:
            raw = response.text

        message = None
        if isinstance(raw, dict) and isinstance(raw.get("error"), dict):
            message = raw["error"].get("message")

        logger.warning(
            "Upstream provider returned an error status",
            extra={
                "provider": self.name,
                "status_code": response.status_code,
                "upstream_message": message,
            },
        )
        raise UpstreamError(
            message or f"{self.display_name} API error: {response.status_code}",
            provider=self.name,
            status_code=response.status_code,
            raw=raw,
        )

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """
        Issue a buffered chat completion.

        Raises:
            ConfigurationError: If the provider credential is missing
            UpstreamError: If the provider answers with a non-success status
        """
        headers = self._headers()
        payload = self.build_payload(request, stream=False)

        logger.debug(
            "Sending buffered completion request",
            extra={
                "provider": self.name,
                "model": payload["model"],
                "message_count": len(payload["messages"]),
            },
        )

        response = await self.client.post(self.endpoint, headers=headers, json=payload)
        await self._raise_for_status(response)
        return self.parse_completion(response.json(), payload["model"])

    async def start_stream(self, request: CompletionRequest) -> httpx.Response:
        """
        Open a streaming chat completion.

        The returned response has not been read; its body is the provider's SSE
        byte stream and the caller owns closing it.

        Raises:
            ConfigurationError: If the provider credential is missing
            UpstreamError: If the provider answers with a non-success status
        """
        headers = self._headers()
        payload = self.build_payload(request, stream=True)

        logger.debug(
            "Opening streaming completion request",
            extra={
                "provider": self.name,
                "model": payload["model"],
                "message_count": len(payload["messages"]),
            },
        )

        upstream_request = self.client.build_request(
            "POST", self.endpoint, headers=headers, json=payload
        )
        response = await self.client.send(upstream_request, stream=True)
        try:
            await self._raise_for_status(response)
        except UpstreamError:
            await response.aclose()
            raise
        return response

    def parse_completion(self, data: dict[str, Any], requested_model: str) -> CompletionResult:
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        usage = data.get("usage")
        return CompletionResult(
            content=text_fragment(message.get("content")),
            reasoning_content=self.parse_reasoning(message) or None,
            usage=UsageSnapshot.from_payload(usage) if usage else UsageSnapshot(),
            model=data.get("model") or requested_model,
            raw=data,
        )

    def parse_reasoning(self, message: dict[str, Any]) -> str:
        """Reasoning text of a message or delta; empty for providers without the channel."""
        return ""

    def parse_delta(self, frame: dict[str, Any]) -> tuple[str, str]:
        """
        Return the ``(content, reasoning)`` fragments of a streamed frame.

        Frames of an unexpected shape yield empty fragments rather than failing.
        """
        choices = frame.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return "", ""
        delta = choices[0].get("delta")
        if not isinstance(delta, dict):
            return "", ""
        return text_fragment(delta.get("content")), self.parse_reasoning(delta)

    def parse_usage(self, frame: dict[str, Any]) -> UsageSnapshot | None:
        usage = frame.get("usage")
        if not isinstance(usage, dict):
            return None
        return UsageSnapshot.from_payload(usage)

    def parse_model(self, frame: dict[str, Any]) -> str | None:
        """Model identifier echoed in-band, for providers that report it."""
        return None
