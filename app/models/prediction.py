from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class PredictionSource(str, Enum):
    OWN = "own"  # predicción propia para la carrera
    FALLBACK = "fallback"  # sustituida por la predicción de temporada


class Prediction(BaseModel):
    """Un usuario predice que un piloto termina en un slot de una carrera"""

    id: str = Field(..., alias="_id")  # user_id:round:slot

    user_id: str
    round: int
    slot: int  # 1-based
    driver_id: str

    created_at: datetime

    class Config:
        populate_by_name = True


class SeasonPrediction(BaseModel):
    """Predicción de la clasificación final de la temporada"""

    id: str = Field(..., alias="_id")  # user_id:season:driver_id

    user_id: str
    season: int
    position: int  # 1-based
    driver_id: str

    created_at: datetime

    # Se rellena al leer, a partir de drivers.active_season
    driver_active: bool = True

    class Config:
        populate_by_name = True


class SlotPick(BaseModel):
    """Par (slot predicho, piloto) tal como lo consume el scoring"""

    slot: int
    driver_id: str


class ResolvedPrediction(BaseModel):
    user_id: str
    picks: list[SlotPick]
    source: PredictionSource

    @property
    def from_season(self) -> bool:
        return self.source == PredictionSource.FALLBACK


# ============================================
# REQUEST / RESPONSE
# ============================================

class PredictionSubmit(BaseModel):
    """Orden completo de pilotos; la posición en la lista es el slot"""
    driver_ids: list[str]


class PredictedSlot(BaseModel):
    slot: int
    driver_id: str


class PredictionResponse(BaseModel):
    round: Optional[int] = None
    season: Optional[int] = None
    picks: list[PredictedSlot]
