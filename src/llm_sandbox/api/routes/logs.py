"""Completion log read endpoint."""

from fastapi import APIRouter, Depends, Query

from llm_sandbox.api.dependencies import get_completion_logger
from llm_sandbox.storage.completion_log import CompletionLogger
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["logs"])


@router.get("/logs")
async def read_logs(
    stats: bool = Query(default=False, description="Return aggregate stats instead of records"),
    limit: int = Query(default=50, ge=0, description="Maximum records to return (0 = all)"),
    completion_logger: CompletionLogger = Depends(get_completion_logger),
) -> dict:
    """
    Read the completion log.

    Returns the most recent records first as ``{ok, logs, count}``, or with
    ``stats=true`` the aggregate ``{ok, totalRequests, totalTokens,
    avgDurationMs, byTemplate}``.
    """
    if stats:
        log_stats = completion_logger.stats()
        logger.debug("Log stats requested", extra={"total_requests": log_stats.total_requests})
        return {"ok": True, **log_stats.model_dump(by_alias=True)}

    records = completion_logger.read(limit)
    logger.debug("Log records requested", extra={"limit": limit, "count": len(records)})
    return {
        "ok": True,
        "logs": [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records],
        "count": len(records),
    }
