"""
tests/conftest.py -- Shared test fixtures for Storefront tests.

This module provides:
  - engine: a fresh in-memory database per test for store/service unit tests
  - account_store / product_store / hasher / tokens / services built on it
  - api_client: TestClient wired to an isolated database via a patched lifespan
  - register_and_login(): helper returning (account_id, auth headers)

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI shares one in-memory instance across all
connections in the process.

DEBUG and BCRYPT_ROUNDS must be set before any module reads Settings so
get_settings() auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set before any core/api import so get_settings() can auto-generate
# SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_app_state
from auth.hashing import PasswordHasher
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenService
from catalog.service import ProductService
from catalog.store import ProductStore
from core.config import get_settings
from core.database import create_db_engine, init_schema

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"


class FakeClock:
    """Settable clock for TokenService tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit-level fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite:///:memory:")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def account_store(engine) -> AccountStore:
    return AccountStore(engine)


@pytest.fixture
def product_store(engine) -> ProductStore:
    return ProductStore(engine)


@pytest.fixture
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock) -> TokenService:
    return TokenService(secret=TEST_SECRET, validity=timedelta(hours=24), clock=clock)


@pytest.fixture
def account_service(account_store, hasher, tokens) -> AccountService:
    return AccountService(account_store, hasher, tokens)


@pytest.fixture
def product_service(product_store) -> ProductService:
    return ProductService(product_store)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(engine):
    """Return a lifespan that wires the app to a pre-built test engine."""

    @asynccontextmanager
    async def test_lifespan(app):
        wire_app_state(app, get_settings(), engine)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by an isolated shared-memory database.

    One client per test module for speed. Tests register their own accounts
    with distinct emails so they do not depend on each other.
    """
    engine = create_db_engine("sqlite:///file:test_storefront_api?mode=memory&cache=shared&uri=true")
    init_schema(engine)
    app.router.lifespan_context = _patch_lifespan(engine)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    engine.dispose()


def register_and_login(client: TestClient, username: str, password: str = "password123") -> tuple[int, dict]:
    """Register username@example.com and return (account_id, bearer headers)."""
    email = f"{username}@example.com"
    resp = client.post("/api/v1/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    account_id = resp.json()["id"]
    resp = client.post("/api/v1/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return account_id, {"Authorization": f"Bearer {resp.json()['access_token']}"}
