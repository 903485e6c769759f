from typing import Optional
from pydantic import BaseModel, Field


class Driver(BaseModel):
    """Piloto. El slug es la clave que se usa en predicciones y resultados."""

    slug: str = Field(..., alias="_id")
    name: str
    number: Optional[int] = None
    team: Optional[str] = None
    country: Optional[str] = None

    active: bool = True  # disponible para resultados y predicciones de carrera
    active_season: bool = True  # sigue siendo elegible para predicciones de temporada

    class Config:
        populate_by_name = True
