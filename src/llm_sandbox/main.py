"""
Main FastAPI application for the LLM Sandbox.

Sets up the application with all routes, middleware, and startup/shutdown logic.
"""

import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from llm_sandbox.api.health import router as health_router
from llm_sandbox.api.routes import (
    completions_router,
    logs_router,
    models_router,
    templates_router,
    usage_router,
)
from llm_sandbox.config import Settings
from llm_sandbox.middleware.request_size import request_size_validator
from llm_sandbox.middleware.security_headers import security_headers_middleware
from llm_sandbox.storage.completion_log import CompletionLogger
from llm_sandbox.utils.errors import SandboxError, UpstreamError
from llm_sandbox.utils.logging import get_logger, setup_logging
from llm_sandbox.utils.prompts import TemplateStore
from llm_sandbox.utils.request_context import set_request_id
from llm_sandbox.utils.token_tracking import UsageTracker

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Manage application lifecycle.

    Opens the shared upstream HTTP client on startup and closes it on shutdown.
    The client has no timeout: a stream runs until it ends or the consumer
    disconnects. A transport placed on ``app.state.http_transport`` before
    startup replaces the network one.

    Args:
        app: FastAPI application instance

    Yields:
        Control during application runtime
    """
    logger.info("Application starting up")
    settings = app.state.settings
    app.state.http_client = httpx.AsyncClient(
        timeout=None,
        transport=getattr(app.state, "http_transport", None),
    )

    logger.info(
        "Providers configured",
        extra={
            "kimi_configured": bool(settings.moonshot_api_key),
            "openai_configured": bool(settings.openai_api_key),
            "log_file": str(settings.log_file),
            "prompts_dir": str(settings.prompts_dir),
        },
    )
    if not settings.moonshot_api_key and not settings.openai_api_key:
        logger.warning("No provider credential configured; completion requests will fail")

    yield

    logger.info("Application shutting down")
    await app.state.http_client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of loading them from the environment

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        try:
            settings = Settings()
        except Exception as exc:
            # Cannot use logger yet - settings failed to load
            import sys

            print(f"CRITICAL: Failed to load settings: {exc}", file=sys.stderr)
            raise

    setup_logging(settings)

    logger.info(
        "Creating FastAPI application",
        extra={
            "environment": settings.environment,
            "api_title": settings.api_title,
        },
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Sandbox for Kimi and OpenAI chat completions with streaming relay and response logging",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.completion_logger = CompletionLogger(settings.log_file)
    app.state.template_store = TemplateStore(settings.prompts_dir)
    app.state.usage_tracker = UsageTracker(settings.usage_history_size)

    # Add request ID and timing middleware (added first, executes last)
    @app.middleware("http")
    async def add_request_tracking(request: Request, call_next):  # type: ignore
        """Add request tracking with streaming-aware timing."""
        request_id = request.headers.get("X-Request-ID", "").strip()
        if not request_id:
            request_id = f"req_{int(time.time() * 1000)}"

        set_request_id(request_id)

        start_time = time.time()

        response = await call_next(request)

        # For streaming, this measures "time to first byte"
        first_byte_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id

        is_streaming = response.headers.get("content-type", "").startswith("text/event-stream")
        if is_streaming:
            response.headers["X-First-Byte-Time"] = str(first_byte_time)
            logger.info(
                "Streaming response initiated",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "first_byte_time": first_byte_time,
                },
            )
        else:
            response.headers["X-Response-Time"] = str(first_byte_time)
            logger.info(
                "Response completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "response_time": first_byte_time,
                },
            )

        return response

    app.middleware("http")(request_size_validator)

    if settings.enable_security_headers:
        app.middleware("http")(security_headers_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(SandboxError)
    async def sandbox_error_handler(request: Request, exc: SandboxError) -> JSONResponse:
        """Render application errors as ``{ok: false, error, raw?}``."""
        content: dict = {"ok": False, "error": exc.message}
        if isinstance(exc, UpstreamError) and exc.raw is not None:
            content["raw"] = exc.raw

        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            f"Request failed: {exc.message}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "path": request.url.path,
            },
        )
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Render body and query validation failures in the same error shape."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'Invalid request')}" if location else "Invalid request"

        logger.warning(
            "Request validation failed",
            extra={"path": request.url.path, "error_count": len(errors)},
        )
        return JSONResponse(status_code=422, content={"ok": False, "error": message})

    # Fixed paths before the /api/{provider} catch-all
    app.include_router(health_router)
    app.include_router(logs_router)
    app.include_router(templates_router)
    app.include_router(models_router)
    app.include_router(usage_router)
    app.include_router(completions_router)

    logger.info("FastAPI application created successfully")

    return app


# Create the application instance for running with FastAPI CLI
app = create_app()
