"""
Controlador de leaderboards - Endpoints de clasificación

El leaderboard se calcula en cada lectura sumando las puntuaciones por carrera.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from app.core.dependencies import Database, CurrentUser
from app.models.score import ScoreDetails
from app.services.leaderboard_service import LeaderboardService


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


class LeaderboardEntryResponse(BaseModel):
    """Entrada del leaderboard (usuario y estadísticas)."""
    rank: int
    user_id: str
    name: str
    avatar_url: Optional[str] = None
    team: Optional[str] = None
    total_points: int
    perfect_predictions: int
    races_scored: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]


class UserRaceScoreResponse(BaseModel):
    round: int
    total_points: int
    perfect_predictions: int


class UserRaceScoreDetailResponse(UserRaceScoreResponse):
    details: ScoreDetails


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    db: Database,
    limit: int = Query(100, ge=1, le=500)
):
    """
    Obtener el leaderboard global (todas las carreras finalizadas).

    Orden: puntos, luego aciertos exactos, luego nombre.
    """
    leaderboard_service = LeaderboardService(db)
    entries = await leaderboard_service.get_leaderboard()
    entries.sort(key=lambda e: (-e.total_points, -e.perfect_predictions, e.name, e.user_id))

    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(rank=idx + 1, **e.model_dump())
            for idx, e in enumerate(entries[:limit])
        ]
    )


@router.get("/me/races", response_model=list[UserRaceScoreResponse])
async def get_my_race_scores(
    user: CurrentUser,
    db: Database
):
    """Puntos del usuario actual en cada carrera finalizada."""
    leaderboard_service = LeaderboardService(db)
    scores = await leaderboard_service.get_user_race_scores(user.id)

    return [
        UserRaceScoreResponse(
            round=s.round,
            total_points=s.total_points,
            perfect_predictions=s.perfect_predictions
        )
        for s in scores
    ]


@router.get("/me/races/{round}", response_model=UserRaceScoreDetailResponse)
async def get_my_race_score(
    round: int,
    user: CurrentUser,
    db: Database
):
    """Desglose slot a slot de la puntuación del usuario actual en una carrera."""
    score = await LeaderboardService(db).get_user_race_score(user.id, round)
    if score is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No score for race {round}"
        )

    return UserRaceScoreDetailResponse(
        round=score.round,
        total_points=score.total_points,
        perfect_predictions=score.perfect_predictions,
        details=score.details
    )
