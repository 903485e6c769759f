"""
🎯 PredictionRepository - predicciones de carrera y de temporada

IDs compuestos:
- predictions:        user_id:round:slot
- season_predictions: user_id:season:driver_id
"""

from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.prediction import Prediction, SeasonPrediction


class PredictionRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["predictions"]
        self.season_collection = db["season_predictions"]
        self.drivers_collection = db["drivers"]

    # ============================================
    # 📌 RACE SCOPE
    # ============================================

    async def get_for_round(self, round: int) -> list[Prediction]:
        """
        🔥 Todas las predicciones de una carrera (todos los usuarios)

        Ordenadas por usuario y slot para que el scoring sea determinista.
        Los slots fuera de 1..10 se devuelven igual; el scoring los descarta.
        """
        cursor = self.collection.find({"round": round}).sort([("user_id", 1), ("slot", 1)])
        docs = await cursor.to_list(length=None)
        return [Prediction(**doc) for doc in docs]

    async def get_user_predictions_for_round(self, user_id: str, round: int) -> list[Prediction]:
        cursor = self.collection.find({"user_id": user_id, "round": round}).sort("slot", 1)
        docs = await cursor.to_list(length=None)
        return [Prediction(**doc) for doc in docs]

    async def replace_user_predictions_for_round(
        self,
        user_id: str,
        round: int,
        driver_ids: list[str],
        created_at: datetime
    ) -> list[Prediction]:
        """Borra las predicciones previas del usuario y guarda el nuevo orden"""
        await self.collection.delete_many({"user_id": user_id, "round": round})

        predictions = [
            Prediction(
                _id=f"{user_id}:{round}:{slot}",
                user_id=user_id,
                round=round,
                slot=slot,
                driver_id=driver_id,
                created_at=created_at
            )
            for slot, driver_id in enumerate(driver_ids, start=1)
        ]

        if predictions:
            await self.collection.insert_many(
                [p.model_dump(by_alias=True) for p in predictions]
            )

        return predictions

    async def delete_for_round(self, round: int) -> int:
        result = await self.collection.delete_many({"round": round})
        return result.deleted_count

    async def delete_driver_picks(self, driver_id: str, rounds: list[int]) -> int:
        """Quita un piloto de las predicciones de las rondas indicadas"""
        result = await self.collection.delete_many({"driver_id": driver_id, "round": {"$in": rounds}})
        return result.deleted_count

    async def get_voter_ids_for_round(self, round: int) -> set[str]:
        """Usuarios con al menos una predicción para la carrera"""
        user_ids = await self.collection.distinct("user_id", {"round": round})
        return set(user_ids)

    # ============================================
    # 📌 SEASON SCOPE
    # ============================================

    async def get_season_predictions(
        self,
        season: int,
        max_position: Optional[int] = None,
        exclude_user_ids: Optional[set[str]] = None,
        user_id: Optional[str] = None
    ) -> list[SeasonPrediction]:
        """
        Predicciones de temporada ordenadas por usuario y posición.

        Cada predicción lleva `driver_active` según drivers.active_season;
        un piloto que ya no existe cuenta como inactivo.
        """
        query: dict = {"season": season}
        if max_position is not None:
            query["position"] = {"$lte": max_position}
        if exclude_user_ids:
            query["user_id"] = {"$nin": list(exclude_user_ids)}
        if user_id is not None:
            query["user_id"] = user_id

        cursor = self.season_collection.find(query).sort([("user_id", 1), ("position", 1)])
        docs = await cursor.to_list(length=None)

        driver_ids = list({doc["driver_id"] for doc in docs})
        drivers_cursor = self.drivers_collection.find(
            {"_id": {"$in": driver_ids}},
            {"_id": 1, "active_season": 1}
        )
        drivers = await drivers_cursor.to_list(length=None)
        active = {d["_id"]: d.get("active_season", False) for d in drivers}

        return [
            SeasonPrediction(**{**doc, "driver_active": active.get(doc["driver_id"], False)})
            for doc in docs
        ]

    async def replace_user_season_predictions(
        self,
        user_id: str,
        season: int,
        driver_ids: list[str],
        created_at: datetime
    ) -> list[SeasonPrediction]:
        await self.season_collection.delete_many({"user_id": user_id, "season": season})

        predictions = [
            SeasonPrediction(
                _id=f"{user_id}:{season}:{driver_id}",
                user_id=user_id,
                season=season,
                position=position,
                driver_id=driver_id,
                created_at=created_at
            )
            for position, driver_id in enumerate(driver_ids, start=1)
        ]

        if predictions:
            await self.season_collection.insert_many(
                [p.model_dump(by_alias=True, exclude={"driver_active"}) for p in predictions]
            )

        return predictions
