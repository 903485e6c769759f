"""
UserRepository - MongoDB access for users collection.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.user import User


class UserRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    @staticmethod
    def _excluded_query(excluded_names: list[str]) -> dict:
        return {
            "$or": [
                {"is_admin": True},
                {"username": {"$in": excluded_names}},
                {"name": {"$in": excluded_names}},
            ]
        }

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        doc = await self.collection.find_one({"_id": user_id})
        return User(**doc) if doc else None

    async def get_by_ids(self, user_ids: list[str]) -> dict[str, User]:
        """Get several users keyed by ID."""
        cursor = self.collection.find({"_id": {"$in": user_ids}})
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: User(**doc) for doc in docs}

    async def list_competitors(self, excluded_names: list[str]) -> list[User]:
        """
        Users that compete in the leaderboard, ordered by name.

        Admins and the configured test accounts are left out.
        """
        cursor = self.collection.find(
            {"$nor": [self._excluded_query(excluded_names)]}
        ).sort([("name", 1), ("_id", 1)])

        docs = await cursor.to_list(length=None)
        return [User(**doc) for doc in docs]

    async def get_excluded_ids(self, excluded_names: list[str]) -> set[str]:
        """IDs of admin/test accounts."""
        cursor = self.collection.find(self._excluded_query(excluded_names), {"_id": 1})
        docs = await cursor.to_list(length=None)
        return {doc["_id"] for doc in docs}
