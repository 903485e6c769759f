from typing import Optional
from pydantic import BaseModel, Field


class SlotDetail(BaseModel):
    """Desglose de puntos de un slot predicho"""

    driver_id: str
    predicted_pos: int
    actual_pos: Optional[int] = None  # None = fuera del top 10
    in_top10: bool
    selection_points: int
    position_points: int
    points: int


class ScoreDetails(BaseModel):
    predictions: list[SlotDetail] = []
    bonus_p1: int = 0
    bonus_podium: int = 0
    from_season: bool = False


class RaceScore(BaseModel):
    """Puntuación de un usuario en una carrera. Clave natural: (user_id, round)"""

    id: str = Field(..., alias="_id")  # user_id:round

    user_id: str
    round: int

    total_points: int
    perfect_predictions: int
    details: ScoreDetails

    class Config:
        populate_by_name = True

    @staticmethod
    def make_id(user_id: str, round: int) -> str:
        return f"{user_id}:{round}"
