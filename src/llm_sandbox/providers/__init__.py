"""
Upstream chat-completion providers.

Provides the provider registry used by the API layer.
"""

import httpx

from llm_sandbox.config import Settings
from llm_sandbox.providers.base import ChatProvider
from llm_sandbox.providers.kimi import KimiProvider
from llm_sandbox.providers.openai import OpenAIProvider
from llm_sandbox.utils.errors import UnknownProviderError

PROVIDERS: dict[str, type[ChatProvider]] = {
    KimiProvider.name: KimiProvider,
    OpenAIProvider.name: OpenAIProvider,
}


def build_provider(name: str, settings: Settings, client: httpx.AsyncClient) -> ChatProvider:
    """
    Construct the provider registered under ``name``.

    Args:
        name: Provider name as used in the URL path ("kimi", "openai")
        settings: Application settings holding credentials and base URLs
        client: Shared HTTP client

    Returns:
        Provider instance bound to the shared client

    Raises:
        UnknownProviderError: If no provider is registered under ``name``
    """
    if name == KimiProvider.name:
        api_key, base_url = settings.moonshot_api_key, settings.moonshot_base
    elif name == OpenAIProvider.name:
        api_key, base_url = settings.openai_api_key, settings.openai_base
    else:
        raise UnknownProviderError(name)

    return PROVIDERS[name](
        client=client,
        api_key=api_key,
        base_url=base_url,
        default_system_prompt=settings.default_system_prompt,
        default_max_tokens=settings.default_max_tokens,
    )


__all__ = [
    "PROVIDERS",
    "ChatProvider",
    "KimiProvider",
    "OpenAIProvider",
    "build_provider",
]
