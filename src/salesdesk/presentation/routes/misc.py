"""Health and quick-reply template routes."""

from __future__ import annotations

from fastapi import APIRouter, Request

from salesdesk.domain.templates import find_templates
from salesdesk.presentation.schemas import TemplateGroup

router = APIRouter(tags=["misc"])


@router.get("/health")
async def health(raw_request: Request):
    """Liveness check plus which upstream systems have configuration."""
    settings = raw_request.app.state.settings
    return {
        "status": "ok",
        "configured": {
            "n8n": bool(settings.n8n_webhook_url),
            "cloudinary": settings.cloudinary_configured,
            "database": bool(settings.database_url),
            "whatsapp": settings.whatsapp_configured,
            "llm": bool(settings.llm_gateway_api_key),
        },
    }


@router.get("/templates", response_model=list[TemplateGroup])
async def templates(q: str = ""):
    """Quick-reply templates, optionally filtered by a case-insensitive search term."""
    return [
        TemplateGroup(category=category, templates=messages)
        for category, messages in find_templates(q).items()
    ]
