"""
🔌 Database Connection Setup - MongoDB Atlas

Configuración centralizada para conectar a MongoDB
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """Singleton para la conexión a MongoDB"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls):
        """Conecta a MongoDB"""
        if cls.client is None:
            settings = get_settings()

            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=10,
                minPoolSize=2,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            # Test de conexión
            await cls.client.admin.command("ping")
            logger.info("✅ Connected to MongoDB: %s", settings.mongodb_db_name)

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("❌ Disconnected from MongoDB")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Retorna la instancia de la base de datos"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db


# ============================================
# 🎯 DEPENDENCY para FastAPI
# ============================================

async def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency para inyectar la DB

    Uso:
        @router.get("/races/{round}/results")
        async def get_results(round: int, db: Database):
            service = RaceResultService(db)
            return await service.get_race_with_results(round)
    """
    return Database.get_db()


# ============================================
# 🏗️ CREAR ÍNDICES (run once al deployment)
# ============================================

async def create_indexes(db: Optional[AsyncIOMotorDatabase] = None):
    """
    Crea los índices necesarios para las queries de scoring y leaderboard.

    Los índices únicos de predictions y race_scores son los que garantizan
    una sola fila por (usuario, carrera, slot) y por (usuario, carrera).
    """
    db = db if db is not None else Database.get_db()

    # Índices para races
    await db.races.create_index("round", unique=True)
    await db.races.create_index("completed")

    # Índices para predictions (scope carrera)
    await db.predictions.create_index(
        [("user_id", ASCENDING), ("round", ASCENDING), ("slot", ASCENDING)],
        unique=True
    )
    await db.predictions.create_index("round")

    # Índices para season_predictions
    await db.season_predictions.create_index(
        [("user_id", ASCENDING), ("season", ASCENDING), ("position", ASCENDING)],
        unique=True
    )
    await db.season_predictions.create_index([("season", ASCENDING), ("position", ASCENDING)])

    # Índices para race_scores
    await db.race_scores.create_index(
        [("user_id", ASCENDING), ("round", ASCENDING)],
        unique=True
    )
    await db.race_scores.create_index([("round", ASCENDING), ("total_points", DESCENDING)])

    # Índices para users y drivers
    await db.users.create_index("email", unique=True)
    await db.users.create_index("username", unique=True)
    await db.drivers.create_index("active")
    await db.drivers.create_index("active_season")

    logger.info("✅ Indexes created successfully")
