# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import base64
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Generator

# In-memory store for anything that touches the module-level engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, create_engine
from sqlalchemy.pool import StaticPool

from main import create_app
from database import create_db_and_tables, get_session
from core.permission_store import PermissionStore
from models.role import PermissionEntry


FIXED_NOW = datetime(2024, 5, 1, 8, 30, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta):
        self.now = self.now + timedelta(**delta)


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(scope="function")
def app(session):
    """Create a test FastAPI application bound to the test session."""
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    return app


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_token():
    """Unsigned header.payload.signature token carrying the given claims."""

    def _make(role=None, **claims):
        if role is not None:
            claims["role"] = role
        payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
        return f"eyJhbGciOiJub25lIn0.{payload}.sig"

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(role=None, **claims):
        return {"Authorization": f"Bearer {make_token(role, **claims)}"}

    return _headers


@pytest.fixture
def grant(session):
    """Replace a role's permissions (creating the role if needed)."""

    def _grant(role_name, permissions):
        store = PermissionStore(session)
        role = store.get_or_create_role(role_name)
        store.replace_permissions(role.id, [PermissionEntry(**p) for p in permissions])
        return role

    return _grant
