"""
tests/conftest.py -- Shared test fixtures for siteadmin integration tests.

This module provides:
  - settings: explicit Settings pointing at a per-test SQLite file
  - engine: a migrated Engine on that file, for store-level tests
  - client: TestClient over create_app(settings) with the REAL lifespan,
    so every test also exercises startup migrations
  - make_principal / login: helpers to seed accounts and obtain tokens

Design: each test gets its own database file under tmp_path. Role changes,
deactivations and deletes are the point of most tests here, so nothing is
shared between tests. Settings are constructed with _env_file=None so a
developer's .env cannot leak into the run.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import create_app
from auth.models import Principal
from auth.store import PrincipalStore
from auth.tokens import hash_password
from core.config import Settings
from core.database import create_db_engine
from migrations import MIGRATIONS, run_migrations

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        secret_key=TEST_SECRET,
        database_url=f"sqlite:///{tmp_path / 'site.sqlite'}",
        rate_limit_enabled=False,
        environment="test",
    )


@pytest.fixture
def engine(settings: Settings) -> Generator[Engine, None, None]:
    eng = create_db_engine(settings.database_url)
    run_migrations(eng, MIGRATIONS)
    yield eng
    eng.dispose()


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Yield a TestClient whose lifespan has run (schema migrated, stores wired)."""
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def make_principal(client: TestClient) -> Callable[..., str]:
    """Return a factory that inserts an account through the store and returns its id."""
    store: PrincipalStore = client.app.state.principal_store

    def _make(username: str, role: str, email: str | None = None, password: str = TEST_PASSWORD) -> str:
        return store.create_principal(
            Principal(
                username=username,
                email=email or f"{username}@example.com",
                role=role,
                password_hash=hash_password(password),
            )
        )

    return _make


@pytest.fixture
def login(client: TestClient) -> Callable[..., str]:
    """Return a helper that logs in over HTTP and returns the bearer token."""

    def _login(email: str, password: str = TEST_PASSWORD) -> str:
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _login
