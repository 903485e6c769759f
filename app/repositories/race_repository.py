"""
RaceRepository - calendario y resultado oficial de cada carrera
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.models.race import Race

# Campos del calendario; completed/results solo los tocan finish y reopen
CALENDAR_FIELDS = ("name", "date", "location", "country", "is_testing")


def _as_utc(value: datetime) -> datetime:
    # Mongo devuelve fechas naive en UTC salvo que el cliente use tz_aware
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class RaceRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["races"]

    # ============================================
    # CREATE / UPDATE / DELETE
    # ============================================

    async def create(self, race: Race) -> Race:
        try:
            await self.collection.insert_one(race.model_dump())
            return race
        except DuplicateKeyError:
            raise ValueError(f"Race with round {race.round} already exists")

    async def upsert_calendar(self, race: Race) -> None:
        """Crea la ronda o actualiza sus datos de calendario sin tocar el resultado"""
        await self.collection.update_one(
            {"round": race.round},
            {
                "$set": race.model_dump(include=set(CALENDAR_FIELDS)),
                "$setOnInsert": {"completed": False, "results": []},
            },
            upsert=True
        )

    async def update_calendar(self, round: int, fields: dict) -> Optional[Race]:
        update = {k: v for k, v in fields.items() if k in CALENDAR_FIELDS}
        if update:
            await self.collection.update_one({"round": round}, {"$set": update})
        return await self.get_by_round(round)

    async def delete(self, round: int) -> bool:
        result = await self.collection.delete_one({"round": round})
        return result.deleted_count > 0

    # ============================================
    # READ
    # ============================================

    async def get_by_round(self, round: int) -> Optional[Race]:
        doc = await self.collection.find_one({"round": round})
        return Race(**doc) if doc else None

    async def list_all(self) -> list[Race]:
        cursor = self.collection.find().sort("round", 1)
        docs = await cursor.to_list(length=None)
        return [Race(**doc) for doc in docs]

    async def list_completed(self) -> list[Race]:
        cursor = self.collection.find({"completed": True}).sort("round", 1)
        docs = await cursor.to_list(length=None)
        return [Race(**doc) for doc in docs]

    async def get_next_round(self, now: datetime) -> Optional[int]:
        """Primera ronda que aún no se corrió; si no queda ninguna, la última"""
        races = await self.list_all()
        for race in races:
            if race.date and _as_utc(race.date) > _as_utc(now):
                return race.round
        return races[-1].round if races else None

    async def is_driver_in_results(self, driver_id: str) -> bool:
        return await self.collection.count_documents({"completed": True, "results": driver_id}) > 0

    # ============================================
    # OUTCOME
    # ============================================

    async def set_outcome(self, round: int, completed: bool, results: list[str]) -> bool:
        """
        Sobrescribe el resultado de la carrera.

        Se usa tanto para finalizar (completed=True) como para reabrir
        o restaurar un estado anterior.
        """
        result = await self.collection.update_one(
            {"round": round},
            {"$set": {"completed": completed, "results": list(results)}}
        )
        return result.matched_count > 0
