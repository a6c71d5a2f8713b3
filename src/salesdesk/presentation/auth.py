"""Admin session helpers for the backend.

Provides session-token creation/verification and a FastAPI dependency that
checks the ``Authorization: Bearer <token>`` header on the proxy routes.

The credential check is a single configured username/password pair; it keeps
casual visitors out of the dashboard and is not a security boundary.  When
``AUTH_ENABLED=false`` the dependency lets every request through.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import HTTPException, Request
from loguru import logger

from salesdesk.config import Settings, get_settings

ALGORITHM = "HS256"


@dataclass
class AdminSession:
    """The session extracted from a valid token."""

    username: str
    expires_at: datetime | None = None


# ---------------------------------------------------------------------------
# Credential and token helpers
# ---------------------------------------------------------------------------


def check_credentials(username: str, password: str, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return hmac.compare_digest(username, settings.admin_username) and hmac.compare_digest(
        password, settings.admin_password
    )


def create_token(username: str, settings: Settings | None = None) -> tuple[str, datetime]:
    """Create a signed session token; returns the token and its expiry."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expires_at = now + timedelta(hours=settings.session_expiry_hours)
    payload = {"sub": username, "exp": expires_at, "iat": now}
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM), expires_at


def decode_token(token: str, settings: Settings | None = None) -> dict:
    """Decode and verify a session token. Raises on invalid/expired tokens."""
    settings = settings or get_settings()
    return jwt.decode(token, settings.session_secret, algorithms=[ALGORITHM])


def session_from_header(request: Request) -> AdminSession:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    try:
        claims = decode_token(auth_header[7:], request.app.state.settings)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expired")
    except jwt.InvalidTokenError:
        logger.warning("Invalid session token presented")
        raise HTTPException(status_code=401, detail="Invalid session")

    return AdminSession(
        username=claims["sub"],
        expires_at=datetime.fromtimestamp(claims["exp"], UTC),
    )


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------


async def require_session(request: Request) -> AdminSession | None:
    """FastAPI dependency: require a valid session unless auth is disabled."""
    if not request.app.state.settings.auth_enabled:
        return None
    return session_from_header(request)
