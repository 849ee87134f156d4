"""
Request size validation middleware.

Validates incoming request body size before processing.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)


async def request_size_validator(request: Request, call_next):  # type: ignore
    """Middleware to validate request body size.

    Checks the Content-Length header against the configured maximum and answers
    413 Payload Too Large when it is exceeded. GET requests and health
    endpoints are not checked.

    Args:
        request: FastAPI Request object
        call_next: Next middleware/route handler

    Returns:
        Response from next middleware/route handler or 413 error response
    """
    if request.method == "GET" or request.url.path.startswith("/health/"):
        return await call_next(request)

    settings = request.app.state.settings
    content_length_header = request.headers.get("content-length")

    # Without a Content-Length header the body parser enforces its own limits
    if content_length_header is None:
        return await call_next(request)

    try:
        content_length = int(content_length_header)
    except ValueError:
        return await call_next(request)

    if content_length > settings.max_request_body_size:
        logger.warning(
            "Request body too large",
            extra={
                "actual_size": content_length,
                "max_size": settings.max_request_body_size,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=413,  # Payload Too Large
            content={
                "ok": False,
                "error": (
                    f"Request body size ({content_length} bytes) exceeds maximum allowed "
                    f"({settings.max_request_body_size} bytes)"
                ),
                "actual_size_bytes": content_length,
                "max_size_bytes": settings.max_request_body_size,
            },
        )

    logger.debug(
        "Request size validation passed",
        extra={
            "content_length": content_length,
            "max_size": settings.max_request_body_size,
            "path": request.url.path,
        },
    )

    return await call_next(request)
