"""
Pytest fixtures and configuration for all tests.
"""

import os

# Settings is read at import time by app.main; tests never talk to a real cluster
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "f1_picks_test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-at-least-32-chars-long")

import pytest
from datetime import datetime, timezone
from typing import AsyncGenerator

from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.user import User

TEST_DB_NAME = "f1_picks_test"

# Orden oficial usado en casi todos los tests
RESULTS = [
    "verstappen", "norris", "leclerc", "piastri", "russell",
    "hamilton", "sainz", "alonso", "gasly", "albon",
    "stroll", "ocon",
]


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    Provide a clean in-memory database for each test.
    """
    client = AsyncMongoMockClient()
    db = client[TEST_DB_NAME]

    yield db

    for collection_name in await db.list_collection_names():
        await db[collection_name].drop()


def make_user(user_id: str, name: str, is_admin: bool = False, username: str | None = None) -> dict:
    return {
        "_id": user_id,
        "email": f"{user_id}@example.com",
        "username": username or user_id,
        "name": name,
        "avatar_url": None,
        "team": None,
        "created_at": datetime(2026, 1, 10, tzinfo=timezone.utc),
        "is_active": True,
        "is_admin": is_admin,
    }


@pytest.fixture
def results():
    return list(RESULTS)


@pytest.fixture
def sample_users():
    """Two competitors, an admin and the test account."""
    return [
        make_user("user1", "Ana"),
        make_user("user2", "Bruno"),
        make_user("admin1", "Admin", is_admin=True),
        make_user("tester", "testadmin", username="testadmin"),
    ]


@pytest.fixture
def sample_drivers():
    drivers = [
        {
            "_id": slug,
            "name": slug.title(),
            "number": idx + 1,
            "team": None,
            "country": None,
            "active": True,
            "active_season": True,
        }
        for idx, slug in enumerate(RESULTS)
    ]
    # Piloto que dejó la temporada: ya no es elegible
    drivers.append({
        "_id": "bearman",
        "name": "Bearman",
        "number": 87,
        "team": None,
        "country": None,
        "active": False,
        "active_season": False,
    })
    return drivers


@pytest.fixture
def sample_race():
    return {
        "round": 5,
        "name": "Miami Grand Prix",
        "date": datetime(2026, 5, 3, 20, 0, tzinfo=timezone.utc),
        "completed": False,
        "results": [],
    }


@pytest.fixture
async def seeded_db(test_db, sample_users, sample_drivers, sample_race):
    """Database with users, drivers and one open race."""
    await test_db["users"].insert_many(sample_users)
    await test_db["drivers"].insert_many(sample_drivers)
    await test_db["races"].insert_one(sample_race)
    return test_db


@pytest.fixture
def admin_user(sample_users):
    return User(**sample_users[2])


@pytest.fixture
def regular_user(sample_users):
    return User(**sample_users[0])


@pytest.fixture
def race_predictions():
    """Factory: slot documents for an ordered list of drivers."""
    return race_prediction_docs


@pytest.fixture
def season_predictions():
    """Factory: season documents for an ordered list of drivers."""
    return season_prediction_docs


def race_prediction_docs(user_id: str, round: int, driver_ids: list[str]) -> list[dict]:
    return [
        {
            "_id": f"{user_id}:{round}:{slot}",
            "user_id": user_id,
            "round": round,
            "slot": slot,
            "driver_id": driver_id,
            "created_at": datetime(2026, 5, 1, tzinfo=timezone.utc),
        }
        for slot, driver_id in enumerate(driver_ids, start=1)
    ]


def season_prediction_docs(user_id: str, season: int, driver_ids: list[str]) -> list[dict]:
    return [
        {
            "_id": f"{user_id}:{season}:{driver_id}",
            "user_id": user_id,
            "season": season,
            "position": position,
            "driver_id": driver_id,
            "created_at": datetime(2026, 2, 1, tzinfo=timezone.utc),
        }
        for position, driver_id in enumerate(driver_ids, start=1)
    ]
