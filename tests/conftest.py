"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("MEMBERSHIP_CACHE_TTL_SECONDS", "0")
    os.environ.setdefault("PROFILE_CACHE_TTL_SECONDS", "0")
    os.environ.setdefault("AUTH_TOKEN_CACHE_TTL_SECONDS", "0")


# Settings are read when app.config is first imported by a test module.
_set_default_env()

from tests.factories import Room  # noqa: E402
from tests.fakes import FakeSupabase  # noqa: E402


@pytest.fixture()
def store() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def room(store: FakeSupabase) -> Room:
    return Room(store)


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture()
def api(client: TestClient, store: FakeSupabase) -> Iterator[Any]:
    """Test client wired to the fake store; ``api.act_as(user_id)`` picks the caller."""
    from app.dependencies import get_current_user, get_db_client
    from app.main import app

    caller = SimpleNamespace(user=None)
    app.dependency_overrides[get_db_client] = lambda: store
    app.dependency_overrides[get_current_user] = lambda: caller.user

    def act_as(user_id: str) -> TestClient:
        caller.user = SimpleNamespace(id=user_id)
        return client

    yield SimpleNamespace(act_as=act_as)
    app.dependency_overrides.clear()
