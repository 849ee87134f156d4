"""Liveness and readiness probes for the LLM Sandbox API."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from llm_sandbox.api.dependencies import get_settings
from llm_sandbox.config import Settings
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check() -> dict[str, str]:
    """The process is up and serving HTTP."""
    logger.debug("Health check (liveness) request received")
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """
    Report whether completions can be served.

    Ready when at least one provider credential is configured; otherwise 503,
    since every completion request would fail with a configuration error.

    Returns:
        ``{status, providers: {name: configured}}``
    """
    providers = {
        "kimi": bool(settings.moonshot_api_key),
        "openai": bool(settings.openai_api_key),
    }
    ready = any(providers.values())

    logger.debug("Readiness check request received", extra={"ready": ready, **providers})
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "providers": providers},
    )
