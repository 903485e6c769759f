from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class Race(BaseModel):
    """
    Carrera del calendario.

    `results` es el orden final oficial (índice 0 = ganador) y solo tiene
    sentido cuando `completed` es True.
    """

    round: int
    name: str
    date: Optional[datetime] = None
    location: Optional[str] = None
    country: Optional[str] = None
    is_testing: bool = False

    completed: bool = False
    results: list[str] = []

    class Config:
        populate_by_name = True
