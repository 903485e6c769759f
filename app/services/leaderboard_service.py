"""
LeaderboardService - Calcula el leaderboard en tiempo real a partir de race_scores.

Nada se guarda: cada lectura suma las filas de cada usuario.
"""

from collections import defaultdict
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import get_settings
from app.models.leaderboard import LeaderboardEntry
from app.models.score import RaceScore
from app.models.user import User
from app.repositories.score_repository import ScoreRepository
from app.repositories.user_repository import UserRepository


def aggregate_scores(users: Iterable[User], scores: Iterable[RaceScore]) -> list[LeaderboardEntry]:
    """
    Suma puntos, aciertos exactos y carreras puntuadas por usuario.

    Los usuarios sin filas aparecen con ceros. Las filas de usuarios que no
    están en `users` (admins, cuentas de prueba) se ignoran. El orden de
    salida es el de `users`.
    """
    by_user: dict[str, list[RaceScore]] = defaultdict(list)
    for score in scores:
        by_user[score.user_id].append(score)

    entries = []
    for user in users:
        user_scores = by_user.get(user.id, [])
        entries.append(LeaderboardEntry(
            user_id=user.id,
            name=user.display_name,
            avatar_url=user.avatar_url,
            team=user.team,
            total_points=sum(s.total_points for s in user_scores),
            perfect_predictions=sum(s.perfect_predictions for s in user_scores),
            races_scored=len(user_scores),
        ))

    return entries


class LeaderboardService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.settings = get_settings()
        self.user_repo = UserRepository(db)
        self.score_repo = ScoreRepository(db)

    async def get_leaderboard(self) -> list[LeaderboardEntry]:
        """Leaderboard global, sin ordenar por puntos (lo hace el controller)"""
        users = await self.user_repo.list_competitors(self.settings.excluded_account_names)
        scores = await self.score_repo.list_for_users([u.id for u in users])
        return aggregate_scores(users, scores)

    async def get_user_race_scores(self, user_id: str) -> list[RaceScore]:
        """Puntos de un usuario carrera a carrera (vista de calendario)"""
        return await self.score_repo.list_for_user(user_id)

    async def get_user_race_score(self, user_id: str, round: int) -> Optional[RaceScore]:
        """Fila de un usuario en una carrera, con el desglose por slot"""
        return await self.score_repo.get(user_id, round)
