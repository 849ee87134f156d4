"""
API endpoints for the LLM Sandbox.

This module contains FastAPI routers for health checks and the /api endpoints.
"""

from llm_sandbox.api.health import router as health_router

__all__ = ["health_router"]
