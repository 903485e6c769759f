"""
Controlador de pilotos
"""

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.core.dependencies import Database
from app.repositories.driver_repository import DriverRepository


router = APIRouter(prefix="/drivers", tags=["drivers"])


class DriverResponse(BaseModel):
    slug: str
    name: str
    number: Optional[int] = None
    team: Optional[str] = None
    country: Optional[str] = None


@router.get("", response_model=list[DriverResponse])
async def list_drivers(
    db: Database,
    season: bool = Query(False, description="Only drivers eligible for season predictions")
):
    """Pilotos activos (para el formulario de resultados y las predicciones)."""
    repo = DriverRepository(db)
    drivers = await (repo.list_active_season() if season else repo.list_active())
    return [DriverResponse(**d.model_dump()) for d in drivers]
