"""
Controlador de salud - Endpoint de comprobación del servicio
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.database import Database


router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Respuesta del chequeo de estado."""
    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Comprueba que la API esté en funcionamiento y que la base de datos responda.
    """
    if Database.client is None:
        db_status = "connected" if Database.db is not None else "disconnected"
        return HealthResponse(status="ok", database=db_status)

    try:
        await Database.client.admin.command("ping")
        db_status = "connected"
    except Exception:
        logger.exception("❌ MongoDB ping failed")
        db_status = "unreachable"

    return HealthResponse(status="ok", database=db_status)
