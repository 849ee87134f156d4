"""Kimi (Moonshot) chat completions provider."""

from typing import Any

from llm_sandbox.models.completion import CompletionRequest, ModelInfo
from llm_sandbox.providers.base import ChatProvider, text_fragment

# The Moonshot API rejects any other value for Kimi models
KIMI_TEMPERATURE = 1


class KimiProvider(ChatProvider):
    """Moonshot's OpenAI-compatible API, with a separate reasoning channel."""

    name = "kimi"
    display_name = "Kimi"
    api_key_env = "MOONSHOT_API_KEY"
    default_model = "kimi-k2.5"
    models = (ModelInfo(id="kimi-k2.5", name="Kimi K2.5", tier="reasoning"),)

    def build_payload(self, request: CompletionRequest, stream: bool) -> dict[str, Any]:
        payload = super().build_payload(request, stream)
        payload["temperature"] = KIMI_TEMPERATURE
        return payload

    def parse_reasoning(self, message: dict[str, Any]) -> str:
        return text_fragment(message.get("reasoning_content"))
