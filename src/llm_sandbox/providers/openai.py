"""OpenAI chat completions provider."""

from typing import Any

from llm_sandbox.models.completion import CompletionRequest, ModelInfo
from llm_sandbox.providers.base import ChatProvider

OPENAI_MODELS = (
    ModelInfo(id="gpt-4.1", name="GPT-4.1", tier="coding"),
    ModelInfo(id="gpt-4.1-mini", name="GPT-4.1 Mini", tier="coding-fast"),
    ModelInfo(id="gpt-4.1-nano", name="GPT-4.1 Nano", tier="coding-ultrafast"),
    ModelInfo(id="o3", name="o3", tier="reasoning"),
    ModelInfo(id="o4-mini", name="o4 Mini", tier="reasoning-fast"),
)


class OpenAIProvider(ChatProvider):
    """
    OpenAI chat completions.

    Streaming requests ask for a trailing usage frame, and every frame echoes
    the model that served the request (which may differ from a requested alias).
    """

    name = "openai"
    display_name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4.1"
    models = OPENAI_MODELS

    def build_payload(self, request: CompletionRequest, stream: bool) -> dict[str, Any]:
        payload = super().build_payload(request, stream)
        if stream:
            payload["stream_options"] = {"include_usage": True}
        return payload

    def parse_model(self, frame: dict[str, Any]) -> str | None:
        model = frame.get("model")
        return model if isinstance(model, str) and model else None
