"""
ScoreRepository - filas de puntuación por (usuario, carrera)

Cada fila se escribe entera con replace_one(upsert=True): un lector nunca
ve una fila a medio escribir y recalcular no duplica filas.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.score import RaceScore


class ScoreRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["race_scores"]

    async def upsert(self, score: RaceScore) -> RaceScore:
        """Crea o sobrescribe la fila (user_id, round)"""
        await self.collection.replace_one(
            {"_id": score.id},
            score.model_dump(by_alias=True, mode="json"),
            upsert=True
        )
        return score

    async def get(self, user_id: str, round: int) -> Optional[RaceScore]:
        doc = await self.collection.find_one({"_id": RaceScore.make_id(user_id, round)})
        return RaceScore(**doc) if doc else None

    async def list_for_round(self, round: int) -> list[RaceScore]:
        cursor = self.collection.find({"round": round}).sort([("total_points", -1), ("user_id", 1)])
        docs = await cursor.to_list(length=None)
        return [RaceScore(**doc) for doc in docs]

    async def list_for_user(self, user_id: str) -> list[RaceScore]:
        cursor = self.collection.find({"user_id": user_id}).sort("round", 1)
        docs = await cursor.to_list(length=None)
        return [RaceScore(**doc) for doc in docs]

    async def list_for_users(self, user_ids: list[str]) -> list[RaceScore]:
        cursor = self.collection.find({"user_id": {"$in": user_ids}}).sort([("user_id", 1), ("round", 1)])
        docs = await cursor.to_list(length=None)
        return [RaceScore(**doc) for doc in docs]

    async def delete_for_round(self, round: int) -> int:
        result = await self.collection.delete_many({"round": round})
        return result.deleted_count

    async def delete_stale_for_round(self, round: int, keep_user_ids: set[str]) -> int:
        """Borra las filas de usuarios que ya no se puntúan en esta carrera"""
        result = await self.collection.delete_many({
            "round": round,
            "user_id": {"$nin": list(keep_user_ids)}
        })
        return result.deleted_count

    async def restore_for_round(self, round: int, scores: list[RaceScore]) -> None:
        """Deja la carrera exactamente con las filas indicadas"""
        await self.collection.delete_many({"round": round})
        if scores:
            await self.collection.insert_many(
                [s.model_dump(by_alias=True, mode="json") for s in scores]
            )
