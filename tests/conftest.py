"""
tests/conftest.py -- Shared test fixtures for the menu service.

This module provides:
  - FakeClock / clock: a controllable UTC clock for expiry and refresh timing
  - tokens: a TokenService bound to the test secret and the fake clock
  - make_store(): isolated named shared-memory SQLite PrincipalStore
  - api_client: TestClient over the real app with a patched lifespan and
    pre-created café + admin accounts

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment must be set before any api/ import: SECRET_KEY so the warning for
the public default key stays out of test logs, RATE_LIMIT_ENABLED so repeated
logins from the TestClient address are never throttled.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"

# CRITICAL: set before api.main / api.limiter import get_settings().
os.environ.setdefault("SECRET_KEY", TEST_SECRET)
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Admin, Cafe
from auth.passwords import hash_password
from auth.service import AuthService
from auth.store import PrincipalStore
from auth.tokens import TokenService

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable UTC clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(secret_key=TEST_SECRET, clock=clock)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store(db_suffix: str) -> PrincipalStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'store').
    """
    return PrincipalStore(f"sqlite:///file:test_menu_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: PrincipalStore, auth: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test collaborators into app.state so TestClient routes
    see the isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.auth = auth
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------

CAFE_LOGIN = "bluecup"
CAFE_PASSWORD = "cafepass123"
ADMIN_PHONE = "+99361000000"
ADMIN_PASSWORD = "adminpass123"


class ApiEnv(NamedTuple):
    client: TestClient
    tokens: TokenService
    store: PrincipalStore
    cafe_id: int
    admin_id: int
    cafe_token: str
    admin_token: str


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv for integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers and the real guard but an isolated store. One café
    and one administrator exist before the client starts; their access tokens
    are pre-issued for Authorization headers.
    """
    store = make_store(request.module.__name__.rsplit(".", 1)[-1])
    tokens = TokenService(secret_key=TEST_SECRET)

    cafe_id = store.create_cafe(
        Cafe(
            login=CAFE_LOGIN,
            name="Blue Cup",
            hashed_password=hash_password(CAFE_PASSWORD),
            code="BC01",
            phone_numbers=["+99312000001"],
        )
    )
    admin_id = store.create_admin(Admin(phone_number=ADMIN_PHONE, hashed_password=hash_password(ADMIN_PASSWORD)))

    app.router.lifespan_context = _patch_lifespan(store, AuthService(store, tokens))

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(
            client=client,
            tokens=tokens,
            store=store,
            cafe_id=cafe_id,
            admin_id=admin_id,
            cafe_token=tokens.issue("cafe", cafe_id).access_token,
            admin_token=tokens.issue("admin", admin_id).access_token,
        )

    store.close()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
