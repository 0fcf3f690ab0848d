# tests/v1/test_auth_endpoints.py
"""Tests for authentication endpoints."""

import pytest
from fastapi import status

from mx_space.core.security import create_access_token, hash_password, is_master_token, verify_password
from mx_space.core.settings import settings

MASTER_PASSWORD = "correct horse battery staple"


@pytest.fixture()
def configured_master(monkeypatch) -> None:
    monkeypatch.setattr(settings, "master_password_hash", hash_password(MASTER_PASSWORD))


@pytest.mark.asyncio
async def test_login_success(client, configured_master) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": settings.master_username, "password": MASTER_PASSWORD},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert is_master_token(data["access_token"])

    check = await client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert check.json() == {"ok": True}


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client, configured_master) -> None:
    wrong_password = await client.post(
        "/api/v1/auth/login",
        json={"username": settings.master_username, "password": "nope"},
    )
    assert wrong_password.status_code == status.HTTP_401_UNAUTHORIZED

    wrong_user = await client.post("/api/v1/auth/login", json={"username": "intruder", "password": MASTER_PASSWORD})
    assert wrong_user.status_code == status.HTTP_401_UNAUTHORIZED
    assert wrong_user.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_login_without_configured_password(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "master_password_hash", None)
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": settings.master_username, "password": MASTER_PASSWORD},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_check_for_guests_and_foreign_tokens(client) -> None:
    assert (await client.get("/api/v1/auth/check")).json() == {"ok": False}

    foreign = create_access_token(subject="someone-else")
    response = await client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {foreign}"})
    assert response.json() == {"ok": False}


def test_password_hash_round_trip() -> None:
    hashed = hash_password(MASTER_PASSWORD)
    assert hashed != hash_password(MASTER_PASSWORD)
    assert hashed.startswith("$2b$")
    assert verify_password(MASTER_PASSWORD, hashed)
    assert not verify_password("other", hashed)
    assert not verify_password(MASTER_PASSWORD, "garbage")
    assert not verify_password(MASTER_PASSWORD, "")
    assert not verify_password(MASTER_PASSWORD, "0123abcd$" + "f" * 64)
