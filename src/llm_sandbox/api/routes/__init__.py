"""
Routers mounted under /api.
"""

from llm_sandbox.api.routes.completions import router as completions_router
from llm_sandbox.api.routes.logs import router as logs_router
from llm_sandbox.api.routes.models import router as models_router
from llm_sandbox.api.routes.templates import router as templates_router
from llm_sandbox.api.routes.usage import router as usage_router

__all__ = [
    "completions_router",
    "logs_router",
    "models_router",
    "templates_router",
    "usage_router",
]
