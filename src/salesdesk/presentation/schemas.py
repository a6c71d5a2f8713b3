"""HTTP request/response schemas (Pydantic models) for the REST API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from salesdesk.application.exceptions import ProxyRequestError
from salesdesk.domain.models import AgentMessage

# ---------------------------------------------------------------------------
# Proxy action envelope
# ---------------------------------------------------------------------------


@dataclass
class ActionRequest:
    """A parsed ``{action, data}`` proxy body.

    ``extra`` holds every other top-level key; the image proxy takes its
    parameters from there as well as from ``data``.
    """

    action: str
    data: dict[str, Any] | None
    extra: dict[str, Any]

    @property
    def params(self) -> dict[str, Any]:
        """Top-level parameters merged with ``data`` (``data`` wins)."""
        return {**self.extra, **(self.data or {})}


def parse_action_request(raw: bytes) -> ActionRequest:
    """Parse a raw proxy body.

    Bodies are parsed by hand rather than by a Pydantic model so that every
    malformed request answers 400 with a plain message instead of a 422
    validation report.
    """
    if not raw or not raw.strip():
        raise ProxyRequestError("Missing request body")
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise ProxyRequestError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ProxyRequestError("Invalid JSON body")

    action = body.pop("action", None)
    if not isinstance(action, str) or not action:
        raise ProxyRequestError('Missing or invalid "action"')

    data = body.pop("data", None)
    if data is not None and not isinstance(data, dict):
        raise ProxyRequestError('"data" must be an object')
    return ActionRequest(action=action, data=data, extra=body)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    username: str = Field(description="Admin username")
    password: str = Field(description="Admin password")


class LoginResponse(BaseModel):
    """Response from POST /auth/login."""

    token: str
    username: str
    expires_at: str


class SessionResponse(BaseModel):
    """Response from GET /auth/session."""

    authenticated: bool
    username: str | None = None


# ---------------------------------------------------------------------------
# Sales agent
# ---------------------------------------------------------------------------


class AgentChatRequest(BaseModel):
    """Request body for POST /functions/sales-agent."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[AgentMessage] = Field(description="New messages for this turn")
    conversation_history: list[AgentMessage] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Earlier turns, oldest first",
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateGroup(BaseModel):
    category: str
    templates: list[str]
