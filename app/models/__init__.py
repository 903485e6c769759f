from .user import User
from .driver import Driver
from .race import Race
from .prediction import Prediction, SeasonPrediction, PredictionSource, ResolvedPrediction, SlotPick
from .score import RaceScore, ScoreDetails, SlotDetail
from .leaderboard import LeaderboardEntry
from .results import ErrorKind, RaceOperationResult, ServiceError

__all__ = [
    "User",
    "Driver",
    "Race",
    "Prediction",
    "SeasonPrediction",
    "PredictionSource",
    "ResolvedPrediction",
    "SlotPick",
    "RaceScore",
    "ScoreDetails",
    "SlotDetail",
    "LeaderboardEntry",
    "ErrorKind",
    "RaceOperationResult",
    "ServiceError",
]
