"""
PredictionService - Business logic for race and season predictions.

Handles validation and locking rules. Scoring lives in app.services.scoring.
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import get_settings
from app.models.prediction import Prediction, SeasonPrediction
from app.repositories.driver_repository import DriverRepository
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.race_repository import RaceRepository
from app.repositories.user_repository import UserRepository


class PredictionServiceError(Exception):
    """Base exception for prediction service errors."""
    pass


class PredictionLockedError(PredictionServiceError):
    """Raised when trying to modify a locked prediction."""
    pass


class RaceNotFoundError(PredictionServiceError):
    """Raised when race is not found."""
    pass


class InvalidPredictionError(PredictionServiceError):
    """Raised when prediction data is invalid."""
    pass


class PredictionService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.settings = get_settings()
        self.prediction_repo = PredictionRepository(db)
        self.race_repo = RaceRepository(db)
        self.driver_repo = DriverRepository(db)
        self.user_repo = UserRepository(db)

    async def _validate_drivers(self, driver_ids: list[str], season: bool) -> None:
        if len(set(driver_ids)) != len(driver_ids):
            raise InvalidPredictionError("A driver can only appear once in a prediction")

        drivers = await self.driver_repo.get_by_slugs(driver_ids)
        for driver_id in driver_ids:
            driver = drivers.get(driver_id)
            if driver is None:
                raise InvalidPredictionError(f"Driver {driver_id} not found")
            if season and not driver.active_season:
                raise InvalidPredictionError(f"Driver {driver_id} is not active this season")
            if not season and not driver.active:
                raise InvalidPredictionError(f"Driver {driver_id} is not active")

    async def save_race_prediction(
        self,
        user_id: str,
        round: int,
        driver_ids: list[str]
    ) -> list[Prediction]:
        """
        Replace the user's predicted finishing order for a race.

        Validates:
        - Race exists
        - Race is not finished (predictions locked)
        - Drivers exist, are active and are not repeated

        An empty list clears the prediction (the season fallback applies again).
        """
        race = await self.race_repo.get_by_round(round)
        if not race:
            raise RaceNotFoundError(f"Race {round} not found")

        if race.completed:
            raise PredictionLockedError("Cannot modify predictions for a completed race")

        await self._validate_drivers(driver_ids, season=False)

        return await self.prediction_repo.replace_user_predictions_for_round(
            user_id, round, driver_ids, datetime.now(timezone.utc)
        )

    async def get_race_prediction(self, user_id: str, round: int) -> list[Prediction]:
        """Get the user's own prediction for a race."""
        return await self.prediction_repo.get_user_predictions_for_round(user_id, round)

    def is_season_locked(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now > self.settings.season_lock_at

    async def save_season_prediction(
        self,
        user_id: str,
        driver_ids: list[str]
    ) -> list[SeasonPrediction]:
        """
        Replace the user's season standings prediction.

        Locked once the season starts.
        """
        if self.is_season_locked():
            raise PredictionLockedError("The season has started, season predictions are locked")

        await self._validate_drivers(driver_ids, season=True)

        return await self.prediction_repo.replace_user_season_predictions(
            user_id, self.settings.current_season, driver_ids, datetime.now(timezone.utc)
        )

    async def get_season_prediction(self, user_id: str) -> list[SeasonPrediction]:
        """
        Get the user's season prediction.

        Drivers no longer active are dropped and positions re-compacted.
        """
        predictions = await self.prediction_repo.get_season_predictions(
            season=self.settings.current_season,
            user_id=user_id
        )
        active = [p for p in predictions if p.driver_active]
        return [
            p.model_copy(update={"position": position})
            for position, p in enumerate(active, start=1)
        ]

    async def get_race_voter_status(self, round: int) -> list[dict]:
        """
        Which competitors have already predicted a race.

        Admin and test accounts are not listed.
        """
        users = await self.user_repo.list_competitors(self.settings.excluded_account_names)
        voter_ids = await self.prediction_repo.get_voter_ids_for_round(round)

        return [
            {"user": user, "has_voted": user.id in voter_ids}
            for user in users
        ]
