"""
tests/conftest.py -- Shared test fixtures for Ubiquitous unit and integration tests.

This module provides:
  - user_store / project_store: repositories on a per-test SQLite file
  - authenticator / sessions / engine: services wired to those stores
  - admin / alice / bob: Identities (one Admin, two Clients) created through real signup
  - api_client: TestClient on the real app with a patched lifespan
  - signup_user / login_user: HTTP helpers for the integration tests

Design: every test gets its own SQLite file under tmp_path. A file (rather
than a shared-memory URI) keeps WAL mode meaningful and lets the store and
the TestClient worker threads open independent connections.

Environment variables must be set before any core/auth/api import:
get_settings() is cached and module-level _settings copies are taken at
import time.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing anything that calls get_settings().
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_services
from auth.authenticator import Authenticator
from auth.models import Identity
from auth.sessions import SessionAuthority
from auth.store import UserStore
from projects.access import AccessRequestEngine
from projects.store import ProjectStore

PASSWORD = "Passw0rd!"


# ---------------------------------------------------------------------------
# Store and service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'ubiquitous_test.db'}"


@pytest.fixture
def user_store(db_url: str) -> Generator[UserStore, None, None]:
    store = UserStore(db_url=db_url)
    yield store
    store.close()


@pytest.fixture
def project_store(db_url: str) -> Generator[ProjectStore, None, None]:
    store = ProjectStore(db_url=db_url)
    yield store
    store.close()


@pytest.fixture
def authenticator(user_store: UserStore) -> Authenticator:
    return Authenticator(user_store)


@pytest.fixture
def sessions() -> SessionAuthority:
    return SessionAuthority(ttl_seconds=3600)


@pytest.fixture
def engine(project_store: ProjectStore) -> AccessRequestEngine:
    return AccessRequestEngine(project_store)


@pytest.fixture
def admin(authenticator: Authenticator) -> Identity:
    return authenticator.signup("root", PASSWORD, "root@example.com", "Admin")


@pytest.fixture
def alice(authenticator: Authenticator) -> Identity:
    return authenticator.signup("alice", PASSWORD, "alice@example.com", "Client")


@pytest.fixture
def bob(authenticator: Authenticator) -> Identity:
    return authenticator.signup("bob", PASSWORD, "bob@example.com", "Client")


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, project_store: ProjectStore, sessions: SessionAuthority):
    """Return an async context manager that replaces the real lifespan.

    Wires the per-test stores into app.state through the same wire_services()
    the production lifespan uses. The purge_task is a long-sleeping coroutine
    (a real asyncio.Task is required; shutdown calls .cancel() on it).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app, user_store, project_store, sessions)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def api_client(
    user_store: UserStore,
    project_store: ProjectStore,
    sessions: SessionAuthority,
) -> Generator[TestClient, None, None]:
    """Yield a TestClient on the real app backed by isolated per-test stores."""
    app.router.lifespan_context = _patch_lifespan(user_store, project_store, sessions)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# HTTP helper fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def signup_user(api_client: TestClient):
    """Return a callable that POSTs /auth/signup and returns the response."""

    def _signup(username: str, role: str, password: str = PASSWORD, email: str | None = None):
        return api_client.post(
            "/api/v1/auth/signup",
            json={
                "username": username,
                "password": password,
                "email": email or f"{username}@example.com",
                "role": role,
            },
        )

    return _signup


@pytest.fixture
def login_user(api_client: TestClient):
    """Return a callable that logs in and returns Authorization headers.

    The client's cookie jar is cleared after each login so one TestClient
    can act as several users by passing the returned headers explicitly.
    """

    def _login(username: str, password: str = PASSWORD) -> dict[str, str]:
        resp = api_client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        api_client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['session_handle']}"}

    return _login
