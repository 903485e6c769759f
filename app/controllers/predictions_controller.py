"""
Controlador de predicciones - orden de llegada por carrera y clasificación de temporada
"""

from fastapi import APIRouter, HTTPException, status

from app.core.dependencies import CurrentUser, Database
from app.models.prediction import PredictedSlot, PredictionResponse, PredictionSubmit
from app.services.prediction_service import (
    PredictionService,
    PredictionLockedError,
    RaceNotFoundError,
    InvalidPredictionError
)


router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.put("/races/{round}", response_model=PredictionResponse)
async def save_race_prediction(
    round: int,
    prediction: PredictionSubmit,
    user: CurrentUser,
    db: Database
):
    """
    Guardar el orden de llegada predicho para una carrera.

    Reemplaza la predicción anterior. Se puede modificar hasta que la
    carrera se finaliza.
    """
    service = PredictionService(db)

    try:
        saved = await service.save_race_prediction(user.id, round, prediction.driver_ids)
    except PredictionLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except RaceNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except InvalidPredictionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return PredictionResponse(
        round=round,
        picks=[PredictedSlot(slot=p.slot, driver_id=p.driver_id) for p in saved]
    )


@router.get("/races/{round}/me", response_model=PredictionResponse)
async def get_my_race_prediction(
    round: int,
    user: CurrentUser,
    db: Database
):
    """
    Obtener la predicción propia del usuario actual para una carrera.
    """
    service = PredictionService(db)
    predictions = await service.get_race_prediction(user.id, round)

    return PredictionResponse(
        round=round,
        picks=[PredictedSlot(slot=p.slot, driver_id=p.driver_id) for p in predictions]
    )


@router.put("/season", response_model=PredictionResponse)
async def save_season_prediction(
    prediction: PredictionSubmit,
    user: CurrentUser,
    db: Database
):
    """
    Guardar la clasificación final de temporada predicha.

    Su top 10 se usa como predicción en las carreras que el usuario no predijo.
    """
    service = PredictionService(db)

    try:
        saved = await service.save_season_prediction(user.id, prediction.driver_ids)
    except PredictionLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except InvalidPredictionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return PredictionResponse(
        season=service.settings.current_season,
        picks=[PredictedSlot(slot=p.position, driver_id=p.driver_id) for p in saved]
    )


@router.get("/season/me", response_model=PredictionResponse)
async def get_my_season_prediction(
    user: CurrentUser,
    db: Database
):
    """Obtener la predicción de temporada del usuario actual."""
    service = PredictionService(db)
    predictions = await service.get_season_prediction(user.id)

    return PredictionResponse(
        season=service.settings.current_season,
        picks=[PredictedSlot(slot=p.position, driver_id=p.driver_id) for p in predictions]
    )
