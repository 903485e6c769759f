"""
Resultados estructurados de las operaciones de finish/reopen.

Los errores nunca se lanzan hacia el caller: se devuelven con un `kind`
para que el controller los traduzca a HTTP sin inspeccionar tracebacks.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ErrorKind(str, Enum):
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"


class ServiceError(BaseModel):
    kind: ErrorKind
    message: str


class RaceOperationResult(BaseModel):
    success: bool
    participants_scored: Optional[int] = None
    error: Optional[ServiceError] = None

    @classmethod
    def ok(cls, participants_scored: Optional[int] = None) -> "RaceOperationResult":
        return cls(success=True, participants_scored=participants_scored)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "RaceOperationResult":
        return cls(success=False, error=ServiceError(kind=kind, message=message))
