"""Auth routes: admin login and session check."""

from fastapi import APIRouter, HTTPException, Request
from loguru import logger

from salesdesk.presentation.auth import check_credentials, create_token, session_from_header
from salesdesk.presentation.schemas import LoginRequest, LoginResponse, SessionResponse

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=LoginResponse)
async def login(request: LoginRequest, raw_request: Request):
    """Check the admin credential pair and return a session token."""
    settings = raw_request.app.state.settings

    if not check_credentials(request.username, request.password, settings):
        logger.warning("POST /auth/login | rejected user={}", request.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token, expires_at = create_token(request.username, settings)
    logger.info("POST /auth/login | user={}", request.username)
    return LoginResponse(token=token, username=request.username, expires_at=expires_at.isoformat())


@router.get("/auth/session", response_model=SessionResponse)
async def session(raw_request: Request):
    """Validate the bearer token. Always authenticated when auth is disabled."""
    if not raw_request.app.state.settings.auth_enabled:
        return SessionResponse(authenticated=True)
    current = session_from_header(raw_request)
    return SessionResponse(authenticated=True, username=current.username)
