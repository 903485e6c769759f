"""
CalendarService - Administración del calendario y de la parrilla.

Los endpoints que lo usan ya exigen admin (CurrentAdmin). Aquí solo se
protegen las carreras y pilotos que ya forman parte de un resultado.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.driver import Driver
from app.models.race import Race
from app.repositories.driver_repository import DriverRepository
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.race_repository import RaceRepository

logger = logging.getLogger(__name__)


class CalendarServiceError(Exception):
    """Base exception for calendar administration errors."""
    pass


class CalendarNotFoundError(CalendarServiceError):
    """Raised when the race or driver does not exist."""
    pass


class AlreadyExistsError(CalendarServiceError):
    """Raised when creating a round or slug that is already taken."""
    pass


class InUseError(CalendarServiceError):
    """Raised when the race or driver is part of a finished result."""
    pass


class CalendarService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.race_repo = RaceRepository(db)
        self.driver_repo = DriverRepository(db)
        self.prediction_repo = PredictionRepository(db)

    # ============================================
    # RACES
    # ============================================

    async def add_race(self, race: Race) -> Race:
        if await self.race_repo.get_by_round(race.round):
            raise AlreadyExistsError(f"Race {race.round} already exists")

        # Una carrera nueva siempre empieza abierta
        race = race.model_copy(update={"completed": False, "results": []})
        try:
            await self.race_repo.create(race)
        except ValueError as e:
            raise AlreadyExistsError(str(e))

        logger.info("📅 Race %s added: %s", race.round, race.name)
        return race

    async def seed_races(self, races: list[Race]) -> int:
        """
        Carga masiva del calendario (idempotente por ronda).

        Las rondas existentes solo actualizan nombre, fecha y lugar;
        su resultado no se toca.
        """
        for race in races:
            await self.race_repo.upsert_calendar(race)
        logger.info("📅 Calendar seeded with %d races", len(races))
        return len(races)

    async def update_race(self, round: int, fields: dict) -> Race:
        race = await self.race_repo.update_calendar(round, fields)
        if race is None:
            raise CalendarNotFoundError(f"Race {round} not found")
        return race

    async def delete_race(self, round: int) -> None:
        """
        Borra una carrera abierta y sus predicciones.

        Una carrera finalizada hay que reabrirla antes, para que sus
        puntuaciones desaparezcan del leaderboard.
        """
        race = await self.race_repo.get_by_round(round)
        if race is None:
            raise CalendarNotFoundError(f"Race {round} not found")
        if race.completed:
            raise InUseError(f"Race {round} is finished, reopen it before deleting")

        deleted = await self.prediction_repo.delete_for_round(round)
        await self.race_repo.delete(round)
        logger.info("🗑️ Race %s deleted with %d predictions", round, deleted)

    async def get_next_round(self, now: Optional[datetime] = None) -> int:
        """Ronda a mostrar por defecto; 1 si el calendario está vacío"""
        now = now or datetime.now(timezone.utc)
        return await self.race_repo.get_next_round(now) or 1

    # ============================================
    # DRIVERS
    # ============================================

    async def add_driver(self, driver: Driver) -> Driver:
        if await self.driver_repo.get_by_slug(driver.slug):
            raise AlreadyExistsError(f"Driver {driver.slug} already exists")
        try:
            return await self.driver_repo.create(driver)
        except ValueError as e:
            raise AlreadyExistsError(str(e))

    async def update_driver(self, slug: str, fields: dict) -> Driver:
        driver = await self.driver_repo.update(slug, fields)
        if driver is None:
            raise CalendarNotFoundError(f"Driver {slug} not found")
        return driver

    async def delete_driver(self, slug: str) -> None:
        """
        Borra un piloto y lo quita de las predicciones de carreras abiertas.

        Si ya aparece en un resultado oficial no se puede borrar (hay que
        desactivarlo). Las predicciones de temporada se conservan: un piloto
        que no existe cuenta como inactivo y se salta en el fallback.
        """
        if await self.driver_repo.get_by_slug(slug) is None:
            raise CalendarNotFoundError(f"Driver {slug} not found")
        if await self.race_repo.is_driver_in_results(slug):
            raise InUseError(f"Driver {slug} appears in a race result, deactivate it instead")

        open_rounds = [r.round for r in await self.race_repo.list_all() if not r.completed]
        removed = await self.prediction_repo.delete_driver_picks(slug, open_rounds)
        await self.driver_repo.delete(slug)
        logger.info("🗑️ Driver %s deleted, removed from %d predictions", slug, removed)
