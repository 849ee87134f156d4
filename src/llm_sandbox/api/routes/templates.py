"""Prompt template endpoints."""

from fastapi import APIRouter, Depends, Query

from llm_sandbox.api.dependencies import get_template_store
from llm_sandbox.models.completion import TemplateRenderRequest
from llm_sandbox.utils.logging import get_logger
from llm_sandbox.utils.prompts import TemplateStore, extract_variables

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["templates"])


@router.get("/templates")
async def get_templates(
    name: str | None = Query(default=None, description="Template to fetch"),
    template_store: TemplateStore = Depends(get_template_store),
) -> dict:
    """
    List templates, or fetch one with its placeholder names.

    Unknown names answer 404 ``{ok: false, error}``.
    """
    if name:
        content = template_store.load_template(name)
        return {
            "ok": True,
            "name": name,
            "content": content,
            "variables": extract_variables(content),
        }

    return {"ok": True, "templates": template_store.list_templates()}


@router.post("/templates/render")
async def render_template(
    render_request: TemplateRenderRequest,
    template_store: TemplateStore = Depends(get_template_store),
) -> dict:
    """Interpolate a template; every placeholder must be supplied (400 otherwise)."""
    content = template_store.load_and_interpolate(render_request.name, render_request.variables)
    logger.debug(
        "Template rendered",
        extra={"template": render_request.name, "variable_count": len(render_request.variables)},
    )
    return {"ok": True, "name": render_request.name, "content": content}
