# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from fastapi.testclient import TestClient
from typing import Generator

from main import create_app
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, get_current_user
from tests.fakes import (
    ADMIN_ID,
    CLIENT_ID,
    STAFF_ID,
    FakeSupabase,
    seed_tables,
)


# ============================================================
# Fixtures
# ============================================================
@pytest.fixture
def fake_db():
    """Seeded in-memory Supabase stand-in."""
    return FakeSupabase(seed_tables())


@pytest.fixture
def empty_db():
    return FakeSupabase({"profiles": [], "checklists": [], "sites": [], "visits": []})


def _user(profile_id):
    row = next(p for p in seed_tables()["profiles"] if p["id"] == profile_id)
    return CurrentUser(**row)


@pytest.fixture
def admin_user():
    return _user(ADMIN_ID)


@pytest.fixture
def staff_user():
    return _user(STAFF_ID)


@pytest.fixture
def client_user():
    return _user(CLIENT_ID)


@pytest.fixture(scope="function")
def app(fake_db):
    """Create a test FastAPI application instance backed by `fake_db`."""
    app = create_app()
    app.dependency_overrides[get_supabase_client] = lambda: fake_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login_as(app):
    """Skip token handling and act as the given CurrentUser."""

    def _login(user: CurrentUser):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture(autouse=True)
def reset_cache():
    """Reset cache before each test."""
    from core.cache import cache_clear
    cache_clear()
    yield
    cache_clear()
