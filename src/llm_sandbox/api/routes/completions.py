"""Buffered and streaming chat completion endpoints."""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from llm_sandbox.api.dependencies import (
    get_completion_logger,
    get_provider,
    get_usage_tracker,
)
from llm_sandbox.models.completion import CompletionRequest
from llm_sandbox.providers import ChatProvider
from llm_sandbox.storage.completion_log import CompletionLogger
from llm_sandbox.streaming.relay import StreamRelay, error_message
from llm_sandbox.utils.errors import ConfigurationError, SandboxError
from llm_sandbox.utils.logging import get_logger
from llm_sandbox.utils.token_tracking import UsageTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["completions"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def _log_request(chat_provider: ChatProvider, request_data: CompletionRequest, stream: bool) -> None:
    logger.info(
        "Completion request",
        extra={
            "provider": chat_provider.name,
            "model": chat_provider.resolve_model(request_data),
            "stream": stream,
        },
    )
    logger.debug(
        "Completion request details",
        extra={
            "provider": chat_provider.name,
            "message_count": len(request_data.messages or []),
            "max_tokens": chat_provider.resolve_max_tokens(request_data),
            "template": request_data.template,
        },
    )


@router.post("/{provider}")
async def create_completion(
    request_data: CompletionRequest,
    chat_provider: ChatProvider = Depends(get_provider),
    completion_logger: CompletionLogger = Depends(get_completion_logger),
    usage_tracker: UsageTracker = Depends(get_usage_tracker),
):
    """
    Run a buffered chat completion and log it.

    Returns ``{ok: true, content, reasoningContent?, usage, model, raw}``.
    Upstream failures answer with the upstream status and are logged; a missing
    provider credential answers 500 and is not logged.
    """
    request_start_time = time.time()
    _log_request(chat_provider, request_data, stream=False)

    def record_failure(exc: Exception) -> None:
        completion_logger.log(
            model=chat_provider.resolve_model(request_data),
            template=request_data.template,
            prompt=request_data.log_prompt(),
            system_prompt=request_data.system_prompt,
            max_tokens=chat_provider.resolve_max_tokens(request_data),
            content="",
            duration_ms=int((time.time() - request_start_time) * 1000),
            error=error_message(exc),
        )

    try:
        result = await chat_provider.complete(request_data)
    except ConfigurationError:
        raise
    except SandboxError as exc:
        record_failure(exc)
        raise
    except Exception as exc:
        logger.error(
            "Unexpected error during completion",
            extra={"error": error_message(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
        record_failure(exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": error_message(exc)})

    duration_ms = int((time.time() - request_start_time) * 1000)
    completion_logger.log(
        model=result.model,
        template=request_data.template,
        prompt=request_data.log_prompt(),
        system_prompt=request_data.system_prompt,
        max_tokens=chat_provider.resolve_max_tokens(request_data),
        content=result.content,
        reasoning_content=result.reasoning_content,
        usage=result.usage,
        duration_ms=duration_ms,
    )
    if request_data.track_tokens:
        usage_tracker.track(
            result.usage, request_data.log_prompt(), result.model, request_data.system_prompt
        )

    return {"ok": True, **result.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.post("/{provider}/stream")
async def stream_completion(
    request_data: CompletionRequest,
    chat_provider: ChatProvider = Depends(get_provider),
    completion_logger: CompletionLogger = Depends(get_completion_logger),
    usage_tracker: UsageTracker = Depends(get_usage_tracker),
):
    """
    Stream a chat completion as normalized server-sent events.

    Each frame is ``data: {"content", "reasoning", "usage"}``; the stream ends
    with ``data: [DONE]``. A stream that ends without the sentinel failed.
    Failures before the upstream stream opens answer with a JSON error instead.
    """
    _log_request(chat_provider, request_data, stream=True)

    relay = StreamRelay(
        chat_provider,
        request_data,
        completion_logger,
        usage_tracker=usage_tracker,
        start_time=time.time(),
    )
    try:
        upstream = await relay.open()
    except SandboxError:
        raise
    except Exception as exc:
        return JSONResponse(status_code=500, content={"ok": False, "error": error_message(exc)})

    return StreamingResponse(
        relay.stream(upstream),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
