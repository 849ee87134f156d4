"""In-memory usage history endpoint."""

from fastapi import APIRouter, Depends

from llm_sandbox.api.dependencies import get_usage_tracker
from llm_sandbox.utils.token_tracking import UsageTracker

router = APIRouter(prefix="/api", tags=["usage"])


@router.get("/usage")
async def get_usage(usage_tracker: UsageTracker = Depends(get_usage_tracker)) -> dict:
    """Summarize the recent completions kept in memory, oldest entry first."""
    return {
        "ok": True,
        **usage_tracker.summary().model_dump(by_alias=True),
        "entries": [e.model_dump(by_alias=True) for e in usage_tracker.entries()],
    }


@router.delete("/usage")
async def clear_usage(usage_tracker: UsageTracker = Depends(get_usage_tracker)) -> dict:
    usage_tracker.clear()
    return {"ok": True}
