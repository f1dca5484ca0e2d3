"""
tests/conftest.py -- Shared test fixtures for Postgate.

This module provides:
  - hasher / tokens / store: unit-level collaborators (fast bcrypt, in-memory DB)
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - api_client: TestClient plus a signed-in author for integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
integration store because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

bcrypt runs at cost 4 everywhere in the suite; the production default of 12
would make each hash take hundreds of milliseconds.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.passwords import PasswordHasher
from auth.tokens import TokenService
from blog.store import BlogStore

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
AUTHOR_EMAIL = "author@example.com"
AUTHOR_PASSWORD = "correct-horse"


class FakeClock:
    """Callable clock for TokenService; tests move it with advance()."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class ApiContext(NamedTuple):
    client: TestClient
    token: str
    user: User
    password: str
    store: BlogStore
    tokens: TokenService
    secret: str


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture
def store(hasher: PasswordHasher) -> Generator[BlogStore, None, None]:
    s = BlogStore("sqlite:///:memory:", hasher)
    yield s
    s.close()


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: BlogStore, hasher: PasswordHasher, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.hasher = hasher
        app.state.tokens = tokens
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for integration tests, one per test module.

    The author account is created before the client starts and a token is
    issued for it with the real clock, so it is valid for 24 hours.
    """
    db_name = request.module.__name__.replace(".", "_")
    hasher = PasswordHasher(rounds=4)
    store = BlogStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true", hasher)
    tokens = TokenService(TEST_SECRET)

    user = store.create_user(AUTHOR_EMAIL, AUTHOR_PASSWORD)
    token = tokens.issue(user.email)

    app.router.lifespan_context = _patch_lifespan(store, hasher, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client, token, user, AUTHOR_PASSWORD, store, tokens, TEST_SECRET)

    store.close()