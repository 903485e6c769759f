from .user_repository import UserRepository
from .driver_repository import DriverRepository
from .race_repository import RaceRepository
from .prediction_repository import PredictionRepository
from .score_repository import ScoreRepository

__all__ = [
    "UserRepository",
    "DriverRepository",
    "RaceRepository",
    "PredictionRepository",
    "ScoreRepository",
]
