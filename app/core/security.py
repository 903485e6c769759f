"""
Seguridad: emisión y verificación de los JWT de sesión

El login (OAuth, registro) vive fuera de este servicio; aquí solo se
validan los tokens ya emitidos.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.core.config import get_settings


def create_access_token(user_id: str, email: str) -> str:
    """
    Crea un JWT para que el usuario pueda hacer requests autenticados

    El JWT contiene el user_id y expira según jwt_expire_minutes
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    payload = {
        "sub": user_id,      # Subject: el usuario
        "email": email,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
        "iat": now,
    }

    # Firmo el token con nuestra clave secreta
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica y valida un JWT

    Retorna el payload si es válido, None si está expirado o corrupto
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
