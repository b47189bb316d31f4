"""
Shared fixtures for route tests.

The app is used without its lifespan: the Supabase client, the caller and the
agent are all supplied through dependency overrides.
"""

import json
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from weekend_backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from weekend_backend.db.client import get_db_client, get_optional_db_client
from weekend_backend.main import app


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_db(fake_db):
    """Serve fake_db to every route that needs the cache client."""
    app.dependency_overrides[get_db_client] = lambda: fake_db
    app.dependency_overrides[get_optional_db_client] = lambda: fake_db
    return fake_db


@pytest.fixture
def login():
    """Factory: login(user_id, role=None) makes that user the caller."""

    def _login(user_id: int = 42, role: str | None = None) -> AuthenticatedUser:
        user = AuthenticatedUser(user_id=user_id, role=role)
        app.dependency_overrides[get_authenticated_user] = lambda: user
        return user

    return _login


def parse_sse(body: str) -> List[Dict[str, Any]]:
    """Decode a text/event-stream body into its data frames."""
    frames = []
    for chunk in body.split("\n\n"):
        if chunk.startswith("data: "):
            frames.append(json.loads(chunk[len("data: "):]))
    return frames


@pytest.fixture
def sse_frames():
    return parse_sse
