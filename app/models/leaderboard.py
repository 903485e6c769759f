from typing import Optional
from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    """Entrada en la tabla de clasificación (resultado agregado)"""

    user_id: str
    name: str
    avatar_url: Optional[str] = None
    team: Optional[str] = None

    total_points: int = 0
    perfect_predictions: int = 0
    races_scored: int = 0

    class Config:
        populate_by_name = True
