"""
DriverRepository - acceso a la colección drivers
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.models.driver import Driver

# El slug es la clave de predicciones y resultados: no se puede editar
EDITABLE_FIELDS = ("name", "number", "team", "country", "active", "active_season")


class DriverRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["drivers"]

    async def create(self, driver: Driver) -> Driver:
        try:
            await self.collection.insert_one(driver.model_dump(by_alias=True))
            return driver
        except DuplicateKeyError:
            raise ValueError(f"Driver {driver.slug} already exists")

    async def update(self, slug: str, fields: dict) -> Optional[Driver]:
        update = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if update:
            await self.collection.update_one({"_id": slug}, {"$set": update})
        return await self.get_by_slug(slug)

    async def delete(self, slug: str) -> bool:
        result = await self.collection.delete_one({"_id": slug})
        return result.deleted_count > 0

    async def get_by_slug(self, slug: str) -> Optional[Driver]:
        doc = await self.collection.find_one({"_id": slug})
        return Driver(**doc) if doc else None

    async def get_by_slugs(self, slugs: list[str]) -> dict[str, Driver]:
        """Pilotos indexados por slug (los que no existen no aparecen)"""
        cursor = self.collection.find({"_id": {"$in": slugs}})
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: Driver(**doc) for doc in docs}

    async def list_all(self) -> list[Driver]:
        cursor = self.collection.find().sort("name", 1)
        docs = await cursor.to_list(length=None)
        return [Driver(**doc) for doc in docs]

    async def list_active(self) -> list[Driver]:
        """Pilotos disponibles para resultados, ordenados por nombre"""
        cursor = self.collection.find({"active": True}).sort("name", 1)
        docs = await cursor.to_list(length=None)
        return [Driver(**doc) for doc in docs]

    async def list_active_season(self) -> list[Driver]:
        cursor = self.collection.find({"active_season": True}).sort("name", 1)
        docs = await cursor.to_list(length=None)
        return [Driver(**doc) for doc in docs]
