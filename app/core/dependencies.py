"""
Dependencies de FastAPI: usuario autenticado, admin y BD
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.security import decode_access_token
from app.database import get_database
from app.repositories.user_repository import UserRepository
from app.models.user import User

# Header "Authorization: Bearer <token>" con el JWT de sesión
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> User:
    """
    Valida el JWT y carga al jugador desde la colección users.

    El token solo se verifica; emitirlo es cosa del proveedor de identidad.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Token invalido o expirado")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Payload del token invalido")

    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise _unauthorized("Usuario no encontrado")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cuenta de usuario deshabilitada",
        )

    return user


async def get_current_admin(
    user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Como get_current_user, pero solo deja pasar a administradores (calendario y pilotos)"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
Database = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
