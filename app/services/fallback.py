"""
Fallback de predicciones: si un usuario no predijo una carrera, se usa su
predicción de temporada (top 10) como predicción de carrera.

Es todo o nada: con una sola predicción propia para la carrera, la de
temporada no se consulta.
"""

from typing import Iterable, Optional

from app.models.prediction import (
    Prediction,
    PredictionSource,
    ResolvedPrediction,
    SeasonPrediction,
    SlotPick,
)
from app.services.scoring import MAX_SCORED_SLOT


def season_to_race_picks(season_predictions: Iterable[SeasonPrediction]) -> list[SlotPick]:
    """
    Top 10 de temporada -> slots de carrera.

    Se descartan los pilotos inactivos y los slots se compactan 1..N
    respetando el orden relativo de la predicción de temporada.
    """
    top = sorted(
        (p for p in season_predictions if p.position <= MAX_SCORED_SLOT),
        key=lambda p: p.position
    )
    active = [p for p in top if p.driver_active]

    return [
        SlotPick(slot=slot, driver_id=p.driver_id)
        for slot, p in enumerate(active, start=1)
    ]


def resolve_prediction(
    user_id: str,
    race_predictions: list[Prediction],
    season_predictions: list[SeasonPrediction]
) -> Optional[ResolvedPrediction]:
    """
    Predicción utilizable de un usuario para una carrera.

    Returns:
        La propia (source=own), la de temporada re-indexada (source=fallback)
        o None si no hay ninguna.
    """
    if race_predictions:
        picks = [
            SlotPick(slot=p.slot, driver_id=p.driver_id)
            for p in sorted(race_predictions, key=lambda p: p.slot)
        ]
        return ResolvedPrediction(user_id=user_id, picks=picks, source=PredictionSource.OWN)

    picks = season_to_race_picks(season_predictions)
    if not picks:
        return None

    return ResolvedPrediction(user_id=user_id, picks=picks, source=PredictionSource.FALLBACK)
