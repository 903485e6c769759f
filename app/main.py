"""
Entry point de la API
"""

import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.database import Database, create_indexes

from app.controllers.admin_controller import router as admin_router
from app.controllers.races_controller import router as races_router
from app.controllers.drivers_controller import router as drivers_router
from app.controllers.predictions_controller import router as predictions_router
from app.controllers.leaderboard_controller import router as leaderboard_router
from app.controllers.health_controller import router as health_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Parse CORS origins
CORS_ORIGINS = [origin.strip() for origin in settings.cors_origins.split(",")]
CORS_ORIGIN_REGEX = re.compile(r"https://.*\.vercel\.app") if settings.app_env == "production" else None


def is_allowed_origin(origin: str) -> bool:
    """Check if origin is allowed by explicit list or regex pattern."""
    if not origin:
        return False
    if origin in CORS_ORIGINS:
        return True
    if CORS_ORIGIN_REGEX and CORS_ORIGIN_REGEX.match(origin):
        return True
    return False


class CORSMiddleware(BaseHTTPMiddleware):
    """
    CORS middleware that answers OPTIONS preflight before routing.
    """

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin", "")

        if request.method == "OPTIONS":
            if is_allowed_origin(origin):
                return Response(
                    status_code=200,
                    headers={
                        "Access-Control-Allow-Origin": origin,
                        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
                        "Access-Control-Allow-Headers": "Authorization, Content-Type, Accept, Origin, X-Requested-With",
                        "Access-Control-Allow-Credentials": "true",
                        "Access-Control-Max-Age": "86400",
                    }
                )
            return Response(status_code=403, content="Origin not allowed")

        response = await call_next(request)

        if is_allowed_origin(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await Database.connect()
    await create_indexes()
    yield
    await Database.disconnect()

app = FastAPI(
    title="F1 Picks API",
    description="Backend de predicciones de orden de llegada de F1",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(CORSMiddleware)

app.include_router(health_router)
app.include_router(races_router)
app.include_router(drivers_router)
app.include_router(predictions_router)
app.include_router(leaderboard_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    # Endpoint raíz, sirve para verificar que la API está levantada
    return {
        "name": "F1 Picks API",
        "version": "1.0.0",
        "docs": "/docs"
    }
