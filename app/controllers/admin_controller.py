"""
Controlador de Admin - Resultados de carreras, calendario y parrilla

Finalizar/reabrir: la autorización la decide RaceResultService (devuelve un
error estructurado) y aquí solo se traduce a HTTP. Calendario y pilotos
usan la dependency CurrentAdmin.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import CurrentAdmin, CurrentUser, Database
from app.models.driver import Driver
from app.models.race import Race
from app.models.results import ErrorKind, RaceOperationResult
from app.repositories.driver_repository import DriverRepository
from app.services.calendar_service import (
    AlreadyExistsError,
    CalendarNotFoundError,
    CalendarService,
    CalendarServiceError,
    InUseError,
)
from app.services.race_result_service import RaceResultService


router = APIRouter(prefix="/admin", tags=["admin"])

ERROR_STATUS = {
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ============================================
# REQUEST SCHEMAS
# ============================================

class FinishRaceRequest(BaseModel):
    """Orden oficial de llegada (slugs de pilotos, índice 0 = ganador)"""
    results: list[str]


class RaceCreateRequest(BaseModel):
    """Nueva ronda del calendario"""
    round: int
    name: str
    date: datetime
    location: Optional[str] = None
    country: Optional[str] = None
    is_testing: bool = False


class RaceUpdateRequest(BaseModel):
    """Solo datos de calendario; la ronda y el resultado no se editan aquí"""
    name: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = None
    country: Optional[str] = None
    is_testing: Optional[bool] = None


class SeedRacesRequest(BaseModel):
    races: list[RaceCreateRequest]


class DriverCreateRequest(BaseModel):
    slug: str
    name: str
    number: Optional[int] = None
    team: Optional[str] = None
    country: Optional[str] = None
    active: bool = True
    active_season: bool = True


class DriverUpdateRequest(BaseModel):
    name: Optional[str] = None
    number: Optional[int] = None
    team: Optional[str] = None
    country: Optional[str] = None
    active: Optional[bool] = None  # False = ya no se puede elegir en resultados ni predicciones
    active_season: Optional[bool] = None


def _to_response(result: RaceOperationResult) -> dict:
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS[result.error.kind],
            detail={"kind": result.error.kind.value, "message": result.error.message}
        )
    return result.model_dump(exclude_none=True)


def _calendar_http_error(e: CalendarServiceError) -> HTTPException:
    if isinstance(e, CalendarNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (AlreadyExistsError, InUseError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _updates(request: BaseModel) -> dict:
    update_data = request.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Debes proporcionar al menos un campo para actualizar"
        )
    return update_data


# ============================================
# RESULT ENDPOINTS
# ============================================

@router.post("/races/{round}/finish")
async def finish_race(
    round: int,
    request: FinishRaceRequest,
    user: CurrentUser,
    db: Database
):
    """
    Registrar el resultado de una carrera y calcular los puntos de todos.
    Solo administradores.

    Si la carrera ya estaba finalizada, recalcula todo con el nuevo resultado.
    """
    service = RaceResultService(db)
    result = await service.finish_race(round, request.results, user)
    return _to_response(result)


@router.post("/races/{round}/reopen")
async def reopen_race(
    round: int,
    user: CurrentUser,
    db: Database
):
    """
    Deshacer la finalización de una carrera (borra sus puntuaciones).
    Solo administradores.
    """
    service = RaceResultService(db)
    result = await service.reopen_race(round, user)
    return _to_response(result)


# ============================================
# STATS RECALCULATION ENDPOINT
# ============================================

@router.post("/recalculate-scores")
async def recalculate_scores(
    user: CurrentUser,
    db: Database
):
    """
    Recalcular las puntuaciones de TODAS las carreras finalizadas.
    Útil cuando se corrige el sistema de puntos.

    Solo administradores.
    """
    service = RaceResultService(db)
    result = await service.recalculate_completed_races(user)
    return _to_response(result)


# ============================================
# CALENDAR ENDPOINTS
# ============================================

@router.post("/races", status_code=status.HTTP_201_CREATED)
async def add_race(
    request: RaceCreateRequest,
    admin: CurrentAdmin,
    db: Database
):
    """
    Añadir una ronda al calendario (empieza abierta).
    Solo administradores.
    """
    try:
        race = await CalendarService(db).add_race(Race(**request.model_dump()))
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return race.model_dump()


@router.post("/races/seed")
async def seed_races(
    request: SeedRacesRequest,
    admin: CurrentAdmin,
    db: Database
):
    """
    Cargar el calendario completo de una vez.
    Las rondas que ya existen solo actualizan sus datos de calendario.
    """
    count = await CalendarService(db).seed_races(
        [Race(**r.model_dump()) for r in request.races]
    )
    return {"success": True, "races": count}


@router.patch("/races/{round}")
async def update_race(
    round: int,
    request: RaceUpdateRequest,
    admin: CurrentAdmin,
    db: Database
):
    """Actualizar nombre, fecha o lugar de una ronda."""
    try:
        race = await CalendarService(db).update_race(round, _updates(request))
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return race.model_dump()


@router.delete("/races/{round}")
async def delete_race(
    round: int,
    admin: CurrentAdmin,
    db: Database
):
    """
    Borrar una ronda abierta y sus predicciones.
    Una ronda finalizada devuelve 409: hay que reabrirla antes.
    """
    try:
        await CalendarService(db).delete_race(round)
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return {"success": True}


# ============================================
# DRIVER ENDPOINTS
# ============================================

@router.get("/drivers")
async def list_all_drivers(admin: CurrentAdmin, db: Database):
    """Todos los pilotos, incluidos los inactivos."""
    drivers = await DriverRepository(db).list_all()
    return [d.model_dump() for d in drivers]


@router.post("/drivers", status_code=status.HTTP_201_CREATED)
async def add_driver(
    request: DriverCreateRequest,
    admin: CurrentAdmin,
    db: Database
):
    try:
        driver = await CalendarService(db).add_driver(Driver(**request.model_dump()))
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return driver.model_dump()


@router.patch("/drivers/{slug}")
async def update_driver(
    slug: str,
    request: DriverUpdateRequest,
    admin: CurrentAdmin,
    db: Database
):
    """Editar datos del piloto o (des)activarlo."""
    try:
        driver = await CalendarService(db).update_driver(slug, _updates(request))
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return driver.model_dump()


@router.delete("/drivers/{slug}")
async def delete_driver(
    slug: str,
    admin: CurrentAdmin,
    db: Database
):
    """
    Borrar un piloto. Si ya está en un resultado oficial devuelve 409
    (desactivarlo con PATCH en su lugar).
    """
    try:
        await CalendarService(db).delete_driver(slug)
    except CalendarServiceError as e:
        raise _calendar_http_error(e)
    return {"success": True}
