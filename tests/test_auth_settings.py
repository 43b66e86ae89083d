"""Tests for authentication, admin settings, health and error shapes."""

import pytest
from httpx import AsyncClient

from homelesson.core.security import (create_access_token, create_refresh_token,
                                      decode_access_token, decode_refresh_token,
                                      token_user_id)

ADMIN_EMAIL = "admin@test.local"
ADMIN_PASSWORD = "adminpass123"


# ── Tokens ──────────────────────────────────────────────────────────
def test_token_types_are_not_interchangeable():
    access = create_access_token(1)
    refresh = create_refresh_token(1)
    assert decode_access_token(access)["sub"] == "1"
    assert decode_refresh_token(refresh)["sub"] == "1"
    assert decode_access_token(refresh) is None
    assert decode_refresh_token(access) is None
    assert decode_access_token("not-a-jwt") is None


def test_access_token_carries_role_and_numeric_subject():
    claims = decode_access_token(create_access_token(7, role="staff"))
    assert claims["role"] == "staff"
    assert token_user_id(claims) == 7
    assert token_user_id({"sub": "abc"}) is None
    assert token_user_id({"sub": "\u00b2"}) is None
    assert token_user_id(None) is None


# ── Login flow ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_sets_cookie_and_authenticates(async_client: AsyncClient, real_auth):
    """A real login yields tokens that work as header and as cookie."""
    resp = await async_client.post(
        "/api/auth/login", data={"username": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert resp.json()["token_type"] == "bearer"
    assert resp.json()["role"] == "admin"
    assert resp.json()["expires_in"] > 0
    assert "access_token" in resp.cookies
    assert "refresh_token" in resp.cookies
    assert "HttpOnly" in resp.headers.get("set-cookie")

    me = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == ADMIN_EMAIL
    assert me.json()["role"] == "admin"

    async_client.cookies.clear()
    via_cookie = await async_client.get("/api/teachers", headers={"Cookie": f"access_token={token}"})
    assert via_cookie.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, real_auth):
    resp = await async_client.post(
        "/api/auth/login", data={"username": ADMIN_EMAIL, "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(async_client: AsyncClient, real_auth):
    resp = await async_client.get("/api/teachers")
    assert resp.status_code == 401
    resp = await async_client.get("/api/teachers", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_with_body(async_client: AsyncClient, real_auth):
    refresh = create_refresh_token(1)
    resp = await async_client.post("/api/auth/refresh", json={"refresh_token": refresh})
    assert resp.status_code == 200
    assert decode_access_token(resp.json()["access_token"])["sub"] == "1"
    assert resp.json()["role"] == "admin"

    bad = await async_client.post("/api/auth/refresh", json={"refresh_token": create_access_token(1)})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookies(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}


@pytest.mark.asyncio
async def test_admin_creates_user(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/users", json={
        "email": "Staff@Test.local", "password": "longenough", "role": "staff",
    })
    assert resp.status_code == 201
    assert resp.json()["email"] == "staff@test.local"

    dup = await async_client.post("/api/auth/users", json={
        "email": "staff@test.local", "password": "longenough", "role": "staff",
    })
    assert dup.status_code == 400

    bad_role = await async_client.post("/api/auth/users", json={
        "email": "x@test.local", "password": "longenough", "role": "owner",
    })
    assert bad_role.status_code == 400


# ── Settings ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_settings_roundtrip(async_client: AsyncClient):
    resp = await async_client.put(
        "/api/settings/transport_allowance",
        json={"config_value": " 15000 ", "description": "Bus fare"},
    )
    assert resp.status_code == 200
    assert resp.json()["config_value"] == "15000"

    listing = (await async_client.get("/api/settings")).json()
    assert listing == [
        {
            "config_key": "transport_allowance",
            "config_value": "15000",
            "description": "Bus fare",
            "updated_at": listing[0]["updated_at"],
        }
    ]


@pytest.mark.asyncio
async def test_settings_validate_known_keys(async_client: AsyncClient):
    resp = await async_client.put("/api/settings/teaching_allowance", json={"config_value": "lots"})
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "config_value"

    for not_a_number in ("\u00b2", "\u0663", "-5"):
        resp = await async_client.put("/api/settings/teaching_allowance", json={"config_value": not_a_number})
        assert resp.status_code == 400, not_a_number
    assert (await async_client.get("/api/settings")).json() == []

    resp = await async_client.put("/api/settings/enable_transport_allowance", json={"config_value": "yes"})
    assert resp.status_code == 400

    resp = await async_client.put("/api/settings/enable_transport_allowance", json={"config_value": "TRUE"})
    assert resp.status_code == 200
    assert resp.json()["config_value"] == "true"


@pytest.mark.asyncio
async def test_settings_are_admin_only(async_client: AsyncClient, as_readonly):
    assert (await async_client.get("/api/settings")).status_code == 403


# ── Health / meta ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_health(async_client: AsyncClient, real_auth):
    """Health needs no token."""
    resp = await async_client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["database"] == "connected"


@pytest.mark.asyncio
async def test_health_reports_unhealthy_database(async_client: AsyncClient, database, monkeypatch):
    async def _down() -> bool:
        return False

    monkeypatch.setattr(database, "ping", _down)
    resp = await async_client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_root_reports_service_identity(async_client: AsyncClient):
    resp = await async_client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "running"
    assert body["health"] == "/api/health"


@pytest.mark.asyncio
async def test_unknown_route(async_client: AsyncClient):
    resp = await async_client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Route /api/nowhere not found", "success": False}
