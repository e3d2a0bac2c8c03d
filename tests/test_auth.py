"""Tests for the shared-password admin session."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from gallery.auth.session import check_password, create_session_token, verify_session_token
from gallery.config import settings
from gallery.errors import AuthError

from tests.conftest import ADMIN_PASSWORD


async def test_login_sets_http_only_cookie(client: AsyncClient) -> None:
    response = await client.post("/admin/login", json={"password": ADMIN_PASSWORD})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.admin_cookie_name}=")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=28800" in set_cookie
    assert "samesite=lax" in set_cookie.lower()

    session = await client.get("/admin/session")
    assert session.json() == {"authenticated": True}


async def test_login_wrong_password(client: AsyncClient) -> None:
    response = await client.post("/admin/login", json={"password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid password"
    assert "set-cookie" not in response.headers


async def test_login_without_configured_password(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "admin_password", None)

    response = await client.post("/admin/login", json={"password": ""})

    assert response.status_code == 500
    assert response.json()["error"] == "Server misconfigured"


async def test_logout_clears_cookie(admin_client: AsyncClient) -> None:
    response = await admin_client.delete("/admin/login")

    assert response.status_code == 200
    assert "Max-Age=0" in response.headers["set-cookie"]

    session = await admin_client.get("/admin/session")
    assert session.json() == {"authenticated": False}
    assert (await admin_client.post("/videos/sync-blob")).status_code == 401


async def test_forged_cookie_rejected(client: AsyncClient) -> None:
    forged = jwt.encode({"sub": "admin"}, "some-other-secret-of-sufficient-length", algorithm="HS256")
    client.cookies.set(settings.admin_cookie_name, forged)

    response = await client.post("/videos/sync-blob")
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid session"


def test_expired_token_rejected() -> None:
    token = create_session_token(now=datetime.now(timezone.utc) - timedelta(hours=settings.admin_session_hours + 1))

    with pytest.raises(AuthError, match="expired"):
        verify_session_token(token)


def test_token_round_trip() -> None:
    payload = verify_session_token(create_session_token())
    assert payload["sub"] == "admin"


def test_wrong_subject_rejected() -> None:
    token = jwt.encode({"sub": "visitor"}, settings.session_secret, algorithm="HS256")
    with pytest.raises(AuthError):
        verify_session_token(token)


def test_check_password() -> None:
    assert check_password(ADMIN_PASSWORD)
    assert not check_password("open-sesame ")
    assert not check_password(None)
