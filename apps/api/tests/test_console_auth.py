"""Tests for console session verification."""

import uuid

import jwt
import pytest

from app.core.config import settings
from app.core.security import create_session_token, decode_session_token


@pytest.mark.asyncio
async def test_bearer_token_is_accepted(client, db):
    token = create_session_token(uuid.uuid4(), "editor", "ed@example.com")
    res = await client.get("/admin/recruitment-forms", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_garbage_token_is_401(client, db):
    res = await client.get("/admin/recruitment-forms", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_is_403(client, db):
    token = create_session_token(uuid.uuid4(), "superuser", "x@example.com")
    res = await client.get("/admin/recruitment-forms", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 403


def test_previous_secret_still_verifies(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "old-secret")
    token = create_session_token(uuid.uuid4(), "admin", "a@example.com")

    monkeypatch.setattr(settings, "JWT_SECRET", "new-secret")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "old-secret")
    assert decode_session_token(token)["role"] == "admin"

    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


@pytest.mark.asyncio
async def test_health(client, db):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json()["version"] == settings.VERSION
