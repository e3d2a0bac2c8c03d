"""Admin login routes."""

from typing import Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from gallery.auth.session import check_password, clear_session_cookie, is_admin, set_session_cookie
from gallery.config import settings
from gallery.errors import AuthError, GalleryError
from gallery.logging_config import logger
from gallery.rate_limit import limiter

router = APIRouter()


class LoginRequest(BaseModel):
    """Admin login request."""

    password: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True


class SessionResponse(BaseModel):
    authenticated: bool


@router.post("/login", response_model=SuccessResponse)
@limiter.limit(settings.login_rate_limit)
async def login(request: Request, response: Response, body: LoginRequest):
    """Exchange the shared admin password for a session cookie valid for 8 hours."""
    if not settings.admin_password:
        logger.error("ADMIN_PASSWORD not set")
        raise GalleryError("Server misconfigured", details="ADMIN_PASSWORD is not set")

    if not check_password(body.password):
        logger.warning("Admin login failed", client=request.client.host if request.client else None)
        raise AuthError("Invalid password")

    set_session_cookie(response)
    logger.info("Admin logged in")
    return SuccessResponse()


@router.delete("/login", response_model=SuccessResponse)
async def logout(response: Response):
    """Clear the admin session cookie."""
    clear_session_cookie(response)
    return SuccessResponse()


@router.get("/session", response_model=SessionResponse)
async def session_status(request: Request):
    """Whether the caller holds a valid admin session."""
    return SessionResponse(authenticated=is_admin(request))
