"""
Controlador de carreras - calendario, resultados y estado de votación
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import Database
from app.models.score import ScoreDetails
from app.repositories.race_repository import RaceRepository
from app.services.calendar_service import CalendarService
from app.services.prediction_service import PredictionService
from app.services.race_result_service import RaceResultService


router = APIRouter(prefix="/races", tags=["races"])


class RaceResponse(BaseModel):
    round: int
    name: str
    date: Optional[datetime] = None
    location: Optional[str] = None
    country: Optional[str] = None
    is_testing: bool = False
    completed: bool
    results: list[str]


class RaceScoreResponse(BaseModel):
    user_id: str
    name: str
    avatar_url: Optional[str] = None
    total_points: int
    perfect_predictions: int
    details: ScoreDetails


class RaceResultsResponse(BaseModel):
    race: RaceResponse
    scores: list[RaceScoreResponse]


class NextRoundResponse(BaseModel):
    round: int


class VoterStatusResponse(BaseModel):
    user_id: str
    name: str
    avatar_url: Optional[str] = None
    has_voted: bool


@router.get("", response_model=list[RaceResponse])
async def list_races(db: Database):
    """Calendario completo ordenado por ronda."""
    races = await RaceRepository(db).list_all()
    return [RaceResponse(**race.model_dump()) for race in races]


@router.get("/next", response_model=NextRoundResponse)
async def get_next_round(db: Database):
    """Siguiente ronda por disputarse (o la última si la temporada terminó)."""
    round = await CalendarService(db).get_next_round()
    return NextRoundResponse(round=round)


@router.get("/{round}/results", response_model=RaceResultsResponse)
async def get_race_results(round: int, db: Database):
    """
    Resultado oficial y puntuaciones de cada usuario con el desglose por slot.
    """
    service = RaceResultService(db)
    data = await service.get_race_with_results(round)

    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Race {round} not found"
        )

    return RaceResultsResponse(
        race=RaceResponse(**data["race"].model_dump()),
        scores=[
            RaceScoreResponse(
                user_id=row["user"].id,
                name=row["user"].display_name,
                avatar_url=row["user"].avatar_url,
                total_points=row["score"].total_points,
                perfect_predictions=row["score"].perfect_predictions,
                details=row["score"].details
            )
            for row in data["scores"]
        ]
    )


@router.get("/{round}/voters", response_model=list[VoterStatusResponse])
async def get_race_voters(round: int, db: Database):
    """Quién ya hizo su predicción para la carrera."""
    service = PredictionService(db)
    statuses = await service.get_race_voter_status(round)

    return [
        VoterStatusResponse(
            user_id=s["user"].id,
            name=s["user"].display_name,
            avatar_url=s["user"].avatar_url,
            has_voted=s["has_voted"]
        )
        for s in statuses
    ]
