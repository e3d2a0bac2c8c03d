"""Admin session cookies.

The admin session is a short-lived HS256 JWT stored in an HTTP-only cookie.
There are no user accounts: a valid token simply means the shared admin
password was presented.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request, Response

from gallery.config import settings
from gallery.errors import AuthError
from gallery.logging_config import logger

SESSION_SUBJECT = "admin"


def check_password(candidate: Optional[str]) -> bool:
    """Constant-time comparison with the configured admin password."""
    if not settings.admin_password or not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), settings.admin_password.encode())


def create_session_token(now: Optional[datetime] = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": SESSION_SUBJECT,
        "iat": issued,
        "exp": issued + timedelta(hours=settings.admin_session_hours),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def verify_session_token(token: str) -> dict:
    """Verify an admin session token.

    Raises:
        AuthError: If the token is expired, tampered with, or not an admin token
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Admin session expired")
        raise AuthError("Session has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid admin session", error=str(e))
        raise AuthError("Invalid session")

    if payload.get("sub") != SESSION_SUBJECT:
        raise AuthError("Invalid session")
    return payload


def set_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=create_session_token(),
        max_age=settings.admin_session_hours * 3600,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.admin_cookie_name,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def is_admin(request: Request) -> bool:
    token = request.cookies.get(settings.admin_cookie_name)
    if not token:
        return False
    try:
        verify_session_token(token)
    except AuthError:
        return False
    return True


async def require_admin(request: Request) -> None:
    """Dependency for admin-only endpoints.

    Raises:
        AuthError: If the admin session cookie is missing or invalid
    """
    token = request.cookies.get(settings.admin_cookie_name)
    if not token:
        raise AuthError("Unauthorized")
    verify_session_token(token)
