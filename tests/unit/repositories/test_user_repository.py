"""
Unit tests for UserRepository
"""

import pytest

from app.repositories.user_repository import UserRepository

EXCLUDED = ["testadmin"]


class TestUserRepository:
    """Test suite for UserRepository database operations."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, seeded_db):
        repo = UserRepository(seeded_db)

        user = await repo.get_by_id("user1")

        assert user is not None
        assert user.id == "user1"
        assert user.display_name == "Ana"

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, seeded_db):
        repo = UserRepository(seeded_db)

        assert await repo.get_by_id("non_existent_id") is None

    @pytest.mark.asyncio
    async def test_get_by_ids(self, seeded_db):
        repo = UserRepository(seeded_db)

        users = await repo.get_by_ids(["user1", "admin1", "ghost"])

        assert set(users) == {"user1", "admin1"}

    @pytest.mark.asyncio
    async def test_list_competitors_excludes_admins_and_test_accounts(self, seeded_db):
        repo = UserRepository(seeded_db)

        users = await repo.list_competitors(EXCLUDED)

        assert [u.id for u in users] == ["user1", "user2"]

    @pytest.mark.asyncio
    async def test_test_account_matched_by_name(self, test_db, sample_users):
        sample_users[1]["name"] = "testadmin"
        await test_db["users"].insert_many(sample_users)
        repo = UserRepository(test_db)

        excluded = await repo.get_excluded_ids(EXCLUDED)

        assert excluded == {"user2", "admin1", "tester"}

    @pytest.mark.asyncio
    async def test_is_excluded(self, seeded_db):
        repo = UserRepository(seeded_db)
        users = await repo.get_by_ids(["user1", "admin1", "tester"])

        assert users["user1"].is_excluded(EXCLUDED) is False
        assert users["admin1"].is_excluded(EXCLUDED) is True
        assert users["tester"].is_excluded(EXCLUDED) is True
