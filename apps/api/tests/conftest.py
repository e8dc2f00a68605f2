"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Session token minting for console (editor/admin) requests
- HTTPX AsyncClient wired to the app via ASGITransport
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Configure before the app (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import COOKIE_NAME, get_db
from app.core.rate_limit import limiter
from app.core.security import create_session_token
from app.db.base import Base
from app.db.enums import Role
from app.db.session import SessionLocal, engine
from app.main import app


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(autouse=True)
def _disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch) -> str:
    path = str(tmp_path / "uploads")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", path)
    return path


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates the schema on the shared in-memory engine and drops it afterwards.

    App code commits freely; isolation comes from rebuilding the tables.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user_id: uuid.UUID
    role: Role
    token: str
    cookie_name: str = COOKIE_NAME


def _auth(role: Role) -> TestAuth:
    user_id = uuid.uuid4()
    token = create_session_token(
        user_id=user_id,
        role=role.value,
        email=f"{role.value}-{user_id.hex[:8]}@test.com",
    )
    return TestAuth(user_id=user_id, role=role, token=token)


@pytest.fixture(scope="function")
def editor_auth() -> TestAuth:
    return _auth(Role.EDITOR)


@pytest.fixture(scope="function")
def admin_auth() -> TestAuth:
    return _auth(Role.ADMIN)


# =============================================================================
# Client Fixtures
# =============================================================================

def _override_db(db: Session) -> None:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    _override_db(db)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    editor_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create editor AsyncClient with session cookie and CSRF header.
    """
    _override_db(db)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={editor_auth.cookie_name: editor_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def admin_client(
    db: Session,
    admin_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create admin AsyncClient authenticated with a Bearer token.
    """
    _override_db(db)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={
            "Authorization": f"Bearer {admin_auth.token}",
            "X-Requested-With": "XMLHttpRequest",
        },
    ) as c:
        yield c
    app.dependency_overrides.clear()


# =============================================================================
# Form definitions
# =============================================================================

def bilingual(en: str, ta: str | None = None) -> dict:
    return {"en": en, "ta": ta or f"{en} (ta)"}


def volunteer_form_payload(**overrides) -> dict:
    """A representative form covering the main field types."""
    payload = {
        "title": bilingual("Volunteer Intake"),
        "description": bilingual("Join the crew"),
        "role": "volunteer",
        "fields": [
            {"id": "full_bio", "type": "textarea", "label": bilingual("About you"), "required": True},
            {
                "id": "days",
                "type": "checkbox",
                "label": bilingual("Available days"),
                "options": [
                    {"value": "sat", "label": bilingual("Saturday")},
                    {"value": "sun", "label": bilingual("Sunday")},
                ],
            },
            {
                "id": "shirt",
                "type": "select",
                "label": bilingual("Shirt size"),
                "options": ["S", "M", "L"],
            },
            {"id": "age", "type": "number", "label": bilingual("Age"), "validation": {"min": 16, "max": 99}},
            {"id": "energy", "type": "scale", "label": bilingual("Energy"), "validation": {"min": 1, "max": 5}},
            {
                "id": "skills",
                "type": "grid_radio",
                "label": bilingual("Skills"),
                "options": [
                    {"value": "teamwork", "label": bilingual("Teamwork")},
                    {"value": "comms", "label": bilingual("Communication")},
                ],
            },
            {"id": "cv", "type": "file", "label": bilingual("CV")},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def form_payload():
    return volunteer_form_payload
