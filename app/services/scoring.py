"""
Scoring - Calcula los puntos de una predicción de orden de llegada

Sistema de puntos (solo cuentan los slots 1-10 del usuario):
- +1 punto de selección: el piloto termina en el top 10 real
- Puntos por precisión de posición (solo si está en el top 10):
    diff 0 (exacto): +6
    diff 1: +4
    diff 2: +3
    diff 3: +2
    diff 4: +1
    diff >= 5: +0
- Máximo por piloto: 7, máximo base: 70

Bonus:
- P1 exacto: +3
- Podio exacto (P1, P2 y P3): +5

Total posible: 78 puntos por carrera

Todas las funciones son puras: mismas entradas, mismo resultado.
"""

from typing import Iterable, NamedTuple, Optional

from app.models.prediction import ResolvedPrediction, SlotPick
from app.models.score import RaceScore, ScoreDetails, SlotDetail


MAX_SCORED_SLOT = 10
SELECTION_POINTS = 1
POSITION_POINTS = {
    0: 6,
    1: 4,
    2: 3,
    3: 2,
    4: 1,
}
BONUS_P1 = 3
BONUS_PODIUM = 5


class BaseScore(NamedTuple):
    total_points: int
    perfect_predictions: int
    details: list[SlotDetail]


class Bonuses(NamedTuple):
    p1: int
    podium: int

    @property
    def total(self) -> int:
        return self.p1 + self.podium


def position_points(diff: int) -> int:
    """Puntos por precisión según la distancia |predicho - real|"""
    return POSITION_POINTS.get(abs(diff), 0)


def score_slot(slot: int, driver_id: str, top10: list[str]) -> SlotDetail:
    """Puntúa un único slot predicho contra el top 10 real"""
    actual_pos: Optional[int] = None
    if driver_id in top10:
        actual_pos = top10.index(driver_id) + 1

    if actual_pos is None:
        return SlotDetail(
            driver_id=driver_id,
            predicted_pos=slot,
            actual_pos=None,
            in_top10=False,
            selection_points=0,
            position_points=0,
            points=0
        )

    accuracy = position_points(slot - actual_pos)
    return SlotDetail(
        driver_id=driver_id,
        predicted_pos=slot,
        actual_pos=actual_pos,
        in_top10=True,
        selection_points=SELECTION_POINTS,
        position_points=accuracy,
        points=SELECTION_POINTS + accuracy
    )


def _scorable_picks(picks: Iterable[SlotPick]) -> list[SlotPick]:
    # Slots fuera de 1..10 se ignoran; si un slot se repite cuenta el primero
    seen: set[int] = set()
    valid = []
    for pick in sorted(picks, key=lambda p: p.slot):
        if not 1 <= pick.slot <= MAX_SCORED_SLOT or pick.slot in seen:
            continue
        seen.add(pick.slot)
        valid.append(pick)
    return valid


def calculate_base_score(picks: Iterable[SlotPick], results: list[str]) -> BaseScore:
    """
    Puntos base de una predicción.

    Args:
        picks: pares (slot, piloto) del usuario
        results: orden final oficial; solo se usa el top 10

    Returns:
        BaseScore con total, aciertos exactos y el desglose por slot
        (ordenado por slot)
    """
    top10 = list(results[:MAX_SCORED_SLOT])

    details = [score_slot(p.slot, p.driver_id, top10) for p in _scorable_picks(picks)]
    total = sum(d.points for d in details)
    perfect = sum(1 for d in details if d.actual_pos == d.predicted_pos)

    return BaseScore(total, perfect, details)


def evaluate_bonuses(details: list[SlotDetail]) -> Bonuses:
    """Bonus de P1 y podio, evaluados sobre los slots 1-3 predichos"""
    exact = {d.predicted_pos for d in details if d.actual_pos == d.predicted_pos}

    p1 = BONUS_P1 if 1 in exact else 0
    podium = BONUS_PODIUM if {1, 2, 3} <= exact else 0

    return Bonuses(p1, podium)


def score_prediction(round: int, prediction: ResolvedPrediction, results: list[str]) -> RaceScore:
    """Fila de puntuación completa (base + bonus) de un usuario en una carrera"""
    base = calculate_base_score(prediction.picks, results)
    bonuses = evaluate_bonuses(base.details)

    return RaceScore(
        _id=RaceScore.make_id(prediction.user_id, round),
        user_id=prediction.user_id,
        round=round,
        total_points=base.total_points + bonuses.total,
        perfect_predictions=base.perfect_predictions,
        details=ScoreDetails(
            predictions=base.details,
            bonus_p1=bonuses.p1,
            bonus_podium=bonuses.podium,
            from_season=prediction.from_season
        )
    )
