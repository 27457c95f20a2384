"""
tests/conftest.py -- Shared test fixtures for the credential service.

This module provides:
  - sql_store / mongo_store: isolated stores, one per test
  - store: parametrized over both backends so each test runs against each
  - service: CredentialService wired to `store`
  - api_client: TestClient whose lifespan is replaced with one that uses `store`

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each test gets its own uniquely named database.

The document store runs against mongomock, an in-process stand-in for a
MongoDB server that speaks the PyMongo API.

DEBUG must be set before any auth/core import so get_settings() generates a
JWT_SECRET instead of raising. BCRYPT_ROUNDS is lowered to the bcrypt minimum
to keep the suite fast; the production default (10) is covered in
test_config.py.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.mongo_store import MongoUserStore
from auth.service import CredentialService
from auth.store import SQLUserStore, UserStore
from core.config import get_settings

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _sqlite_url() -> str:
    return f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _patch_lifespan(store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store into app.state so TestClient routes never open the
    configured production database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.credential_service = CredentialService(store, get_settings())
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sql_store() -> Generator[SQLUserStore, None, None]:
    s = SQLUserStore(_sqlite_url())
    yield s
    s.close()


@pytest.fixture
def mongo_store() -> Generator[MongoUserStore, None, None]:
    s = MongoUserStore(client=mongomock.MongoClient(), db_name="test_db")
    yield s
    s.close()


@pytest.fixture(params=["sql", "mongo"])
def store(request) -> UserStore:
    """Each test using this fixture runs once per storage backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(store: UserStore) -> CredentialService:
    return CredentialService(store, get_settings())


@pytest.fixture
def api_client(store: UserStore) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with a patched lifespan.

    Tests hit real route handlers, dependency injection and exception
    handlers, but against an isolated store.
    """
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
