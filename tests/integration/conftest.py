"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.security import create_access_token
from app.database import Database
from app.main import app


@pytest.fixture
async def client(seeded_db):
    """
    HTTP client for testing API endpoints.

    Points the Database singleton at the in-memory test database.
    """
    original_db = Database.db
    Database.db = seeded_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    Database.db = original_db


def _headers(user_id: str) -> dict:
    token = create_access_token(user_id, f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Headers for a regular competitor (user1)."""
    return _headers("user1")


@pytest.fixture
def admin_headers():
    """Headers for the admin account."""
    return _headers("admin1")
