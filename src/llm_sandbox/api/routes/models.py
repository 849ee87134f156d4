"""Model catalogue endpoint."""

from fastapi import APIRouter, Depends

from llm_sandbox.api.dependencies import get_settings
from llm_sandbox.config import Settings
from llm_sandbox.providers import PROVIDERS
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def list_models(settings: Settings = Depends(get_settings)) -> dict:
    """
    List the models offered per provider.

    Each provider also reports its default model and whether its credential
    is configured, so clients can grey out unusable providers.
    """
    configured = {
        "kimi": bool(settings.moonshot_api_key),
        "openai": bool(settings.openai_api_key),
    }

    providers = {
        name: {
            "defaultModel": provider_cls.default_model,
            "configured": configured.get(name, False),
            "models": [m.model_dump() for m in provider_cls.models],
        }
        for name, provider_cls in PROVIDERS.items()
    }

    logger.debug("Returning model catalogue", extra={"provider_count": len(providers)})
    return {"ok": True, "providers": providers}
