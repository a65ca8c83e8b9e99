"""
tests/conftest.py -- Shared test fixtures for loginapp.

This module provides:
  - hasher / tokens / store / service: unit-level auth components wired with
    a cheap bcrypt cost and an in-memory database
  - FixedClock: a settable clock for deterministic token expiry tests
  - api_client: TestClient against the real FastAPI app with a patched lifespan

Design: the API fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each api_client gets a unique name so tests never see
each other's users.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates JWT_SECRET in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any core/api import so get_settings() can
# auto-generate JWT_SECRET in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.hashing import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"

# bcrypt's minimum cost -- keeps the suite fast without changing semantics.
TEST_ROUNDS = 4


class FixedClock:
    """Callable clock returning a settable timezone-aware datetime."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def tokens() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, lifetime_seconds=3600)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(store: UserStore, hasher: PasswordHasher, tokens: TokenIssuer, clock: FixedClock) -> AuthService:
    return AuthService(store, hasher, tokens, clock=clock)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test components into app.state so TestClient routes see
    an isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, store) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers and exception handlers against a private
    in-memory store.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    service = AuthService(
        user_store,
        PasswordHasher(rounds=TEST_ROUNDS),
        TokenIssuer(TEST_SECRET, lifetime_seconds=3600),
    )

    app.router.lifespan_context = _patch_lifespan(user_store, service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store

    user_store.close()
