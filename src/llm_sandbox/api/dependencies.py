"""Shared FastAPI dependencies.

Everything a route needs lives on ``app.state`` (set up in ``create_app`` and
the lifespan); these helpers hand it to the routes.
"""

from fastapi import Request

from llm_sandbox.config import Settings
from llm_sandbox.providers import ChatProvider, build_provider
from llm_sandbox.storage.completion_log import CompletionLogger
from llm_sandbox.utils.logging import get_logger
from llm_sandbox.utils.prompts import TemplateStore
from llm_sandbox.utils.token_tracking import UsageTracker

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_provider(provider: str, request: Request) -> ChatProvider:
    """
    Resolve the ``{provider}`` path parameter to a provider bound to the shared client.

    Raises:
        UnknownProviderError: If the name is not registered (rendered as 404)
    """
    chat_provider = build_provider(
        provider, request.app.state.settings, request.app.state.http_client
    )
    logger.debug("Provider resolved", extra={"provider": chat_provider.name})
    return chat_provider


def get_completion_logger(request: Request) -> CompletionLogger:
    return request.app.state.completion_logger


def get_template_store(request: Request) -> TemplateStore:
    return request.app.state.template_store


def get_usage_tracker(request: Request) -> UsageTracker:
    return request.app.state.usage_tracker
