"""
tests/conftest.py -- Shared test fixtures for Intelligencer admin integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for auth + content
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests
  - web_client: TestClient with follow_redirects=False for web route tests
  - content_store / admin_store: plain stores for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import. get_settings() is cached on
# first call, so these must be in place before the app is imported.
os.environ.setdefault("DEBUG", "true")
# Login tests run many sign-ins from one client IP.
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import create_access_token, hash_password
from content.store import ContentStore

# TrustedHostMiddleware rejects TestClient's default "testserver" host.
BASE_URL = "http://localhost"

ADMIN_PASSWORD = "correct-horse-battery"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[AdminStore, ContentStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'web').
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    content_url = f"sqlite:///file:test_content_{db_suffix}?mode=memory&cache=shared&uri=true"
    return AdminStore(db_url=auth_url), ContentStore(db_url=content_url)


def _patch_lifespan(admin_store: AdminStore, content: ContentStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.admin_store = admin_store
        app.state.content = content
        yield

    return test_lifespan


def _create_admin(store: AdminStore, email: str, name: str) -> int:
    return store.create_admin(Admin(email=email, name=name, hashed_password=hash_password(ADMIN_PASSWORD)))


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    """
    admin_store, content = _make_test_stores("api")
    admin_id = _create_admin(admin_store, "editor@example.com", "Test Editor")
    token = create_access_token(admin_id, "editor@example.com", "Test Editor", expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(admin_store, content)

    with TestClient(app, base_url=BASE_URL, raise_server_exceptions=True) as client:
        yield client, token, admin_id

    admin_store.close()
    content.close()


@pytest.fixture(scope="module")
def web_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for web route integration tests.

    follow_redirects=False is essential for web route tests: we assert on
    redirect *locations* (e.g. 302 to /admin/login), which are invisible once
    the client follows the redirect and returns the final 200 response.
    """
    admin_store, content = _make_test_stores("web")
    admin_id = _create_admin(admin_store, "webadmin@example.com", "Web Admin")
    token = create_access_token(admin_id, "webadmin@example.com", "Web Admin", expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(admin_store, content)

    with TestClient(app, base_url=BASE_URL, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, token

    admin_store.close()
    content.close()


@pytest.fixture(autouse=True)
def _clear_client_cookies(request) -> Generator[None, None, None]:
    """Drop cookies a test picked up (e.g. from a login) so the next test starts signed out."""
    yield
    for name in ("api_client", "web_client"):
        if name in request.fixturenames:
            request.getfixturevalue(name)[0].cookies.clear()


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def content_store() -> Generator[ContentStore, None, None]:
    # A pooled :memory: SQLite connection is reused within one thread, which
    # is all the unit tests need.
    store = ContentStore(db_url="sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def admin_store() -> Generator[AdminStore, None, None]:
    store = AdminStore(db_url="sqlite:///:memory:")
    yield store
    store.close()
