"""
RaceResultService - Finaliza y reabre carreras y recalcula las puntuaciones.

Estados de una carrera:
- abierta (completed=False, sin filas en race_scores)
- finalizada (completed=True, una fila por usuario puntuado)

finish_race sobre una carrera ya finalizada recalcula todo desde cero
(sirve para corregir resultados o bugs del scoring). reopen_race la devuelve
a abierta borrando todas sus filas.

Ninguna operación lanza excepciones hacia el caller: devuelven un
RaceOperationResult con el error estructurado.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import get_settings
from app.models.prediction import Prediction, SeasonPrediction
from app.models.race import Race
from app.models.results import ErrorKind, RaceOperationResult
from app.models.score import RaceScore
from app.models.user import User
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.race_repository import RaceRepository
from app.repositories.score_repository import ScoreRepository
from app.repositories.user_repository import UserRepository
from app.services.fallback import resolve_prediction
from app.services.scoring import MAX_SCORED_SLOT, score_prediction

logger = logging.getLogger(__name__)


class RaceResultService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.settings = get_settings()
        self.race_repo = RaceRepository(db)
        self.prediction_repo = PredictionRepository(db)
        self.score_repo = ScoreRepository(db)
        self.user_repo = UserRepository(db)

    # ============================================
    # VALIDATION
    # ============================================

    @staticmethod
    def _check_admin(actor: Optional[User]) -> Optional[RaceOperationResult]:
        if actor is None or not actor.is_admin:
            return RaceOperationResult.fail(
                ErrorKind.AUTHORIZATION,
                "Admin privileges required"
            )
        return None

    @staticmethod
    def _check_results(results: Optional[list[str]]) -> Optional[RaceOperationResult]:
        if not results:
            return RaceOperationResult.fail(
                ErrorKind.VALIDATION,
                "You must provide the finishing order"
            )
        if any(not isinstance(slug, str) or not slug.strip() for slug in results):
            return RaceOperationResult.fail(
                ErrorKind.VALIDATION,
                "Finishing order contains empty driver ids"
            )
        if len(set(results)) != len(results):
            return RaceOperationResult.fail(
                ErrorKind.VALIDATION,
                "Finishing order contains duplicated drivers"
            )
        return None

    # ============================================
    # SCORING PASS
    # ============================================

    async def build_scores(self, round: int, results: list[str]) -> list[RaceScore]:
        """
        Calcula (sin escribir nada) las filas de todos los usuarios.

        1. Predicciones propias para la carrera, agrupadas por usuario
        2. Fallback de temporada para quien no tiene predicción propia
           (nunca para cuentas admin/test)
        3. Scoring + bonus de cada usuario
        """
        race_predictions = await self.prediction_repo.get_for_round(round)

        by_user: dict[str, list[Prediction]] = defaultdict(list)
        for prediction in race_predictions:
            by_user[prediction.user_id].append(prediction)

        excluded_ids = await self.user_repo.get_excluded_ids(self.settings.excluded_account_names)
        season_predictions = await self.prediction_repo.get_season_predictions(
            season=self.settings.current_season,
            max_position=MAX_SCORED_SLOT,
            exclude_user_ids=set(by_user) | excluded_ids
        )

        season_by_user: dict[str, list[SeasonPrediction]] = defaultdict(list)
        for prediction in season_predictions:
            season_by_user[prediction.user_id].append(prediction)

        scores = []
        for user_id in sorted(set(by_user) | set(season_by_user)):
            resolved = resolve_prediction(
                user_id,
                by_user.get(user_id, []),
                season_by_user.get(user_id, [])
            )
            if resolved is None:
                continue
            scores.append(score_prediction(round, resolved, results))

        return scores

    async def _write_scores(self, round: int, scores: list[RaceScore]) -> list[BaseException]:
        """Upserts concurrentes; devuelve los errores (lista vacía si todo fue bien)"""
        outcomes = await asyncio.gather(
            *(self.score_repo.upsert(score) for score in scores),
            return_exceptions=True
        )
        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if errors:
            return errors

        await self.score_repo.delete_stale_for_round(round, {s.user_id for s in scores})
        return []

    async def _rollback(self, race: Race, previous_scores: list[RaceScore]) -> None:
        """Restaura el resultado y las filas previas de la carrera"""
        try:
            await self.score_repo.restore_for_round(race.round, previous_scores)
            await self.race_repo.set_outcome(race.round, race.completed, race.results)
        except Exception:
            logger.exception("❌ Rollback failed for race %s", race.round)

    # ============================================
    # OPERATIONS
    # ============================================

    async def finish_race(
        self,
        round: int,
        results: list[str],
        actor: Optional[User]
    ) -> RaceOperationResult:
        """
        Finalizar una carrera con su orden oficial y puntuar a todos los usuarios.

        Si la carrera ya estaba finalizada, el resultado y todas las filas
        se sobrescriben. Si algo falla se restaura el estado anterior.
        """
        error = self._check_admin(actor) or self._check_results(results)
        if error:
            return error

        race = await self.race_repo.get_by_round(round)
        if not race:
            return RaceOperationResult.fail(ErrorKind.NOT_FOUND, f"Race {round} not found")

        logger.info("🏁 Finishing race %s (recompute=%s)", round, race.completed)
        previous_scores = await self.score_repo.list_for_round(round)

        try:
            # El resultado queda finalizado antes de escribir cualquier fila
            await self.race_repo.set_outcome(round, True, results)
            scores = await self.build_scores(round, results)
            errors = await self._write_scores(round, scores)
        except Exception as e:
            logger.exception("❌ Scoring pass failed for race %s", round)
            await self._rollback(race, previous_scores)
            return RaceOperationResult.fail(ErrorKind.PERSISTENCE, str(e) or "Error finishing race")

        if errors:
            logger.error(
                "❌ %d of %d score writes failed for race %s: %s",
                len(errors), len(scores), round, errors[0]
            )
            await self._rollback(race, previous_scores)
            return RaceOperationResult.fail(
                ErrorKind.PERSISTENCE,
                str(errors[0]) or "Error saving scores"
            )

        logger.info("✅ Race %s finished, %d participants scored", round, len(scores))
        return RaceOperationResult.ok(participants_scored=len(scores))

    async def reopen_race(self, round: int, actor: Optional[User]) -> RaceOperationResult:
        """
        Deshacer la finalización: borra todas las filas y limpia el resultado.
        """
        error = self._check_admin(actor)
        if error:
            return error

        race = await self.race_repo.get_by_round(round)
        if not race:
            return RaceOperationResult.fail(ErrorKind.NOT_FOUND, f"Race {round} not found")

        previous_scores = await self.score_repo.list_for_round(round)

        try:
            deleted = await self.score_repo.delete_for_round(round)
            await self.race_repo.set_outcome(round, False, [])
        except Exception as e:
            logger.exception("❌ Reopening race %s failed", round)
            await self._rollback(race, previous_scores)
            return RaceOperationResult.fail(ErrorKind.PERSISTENCE, str(e) or "Error reopening race")

        logger.info("↩️ Race %s reopened, %d scores deleted", round, deleted)
        return RaceOperationResult.ok()

    async def recalculate_completed_races(self, actor: Optional[User]) -> RaceOperationResult:
        """
        Recalcular todas las carreras finalizadas con su resultado guardado.

        Útil cuando se corrige el sistema de puntos. Se detiene en la primera
        carrera que falle; las anteriores quedan ya recalculadas.
        """
        error = self._check_admin(actor)
        if error:
            return error

        participants_scored = 0
        for race in await self.race_repo.list_completed():
            result = await self.finish_race(race.round, race.results, actor)
            if not result.success:
                result.error.message = f"Race {race.round}: {result.error.message}"
                return result
            participants_scored += result.participants_scored

        return RaceOperationResult.ok(participants_scored=participants_scored)

    # ============================================
    # READ
    # ============================================

    async def get_race_with_results(self, round: int) -> Optional[dict]:
        """
        Carrera con su resultado y las filas de todos los usuarios
        (sin cuentas admin/test), ordenadas por puntos.
        """
        race = await self.race_repo.get_by_round(round)
        if not race:
            return None

        scores = await self.score_repo.list_for_round(round)
        users = await self.user_repo.get_by_ids([s.user_id for s in scores])
        excluded = self.settings.excluded_account_names

        rows = []
        for score in scores:
            user = users.get(score.user_id)
            if user is None or user.is_excluded(excluded):
                continue
            rows.append({"user": user, "score": score})

        return {"race": race, "scores": rows}
