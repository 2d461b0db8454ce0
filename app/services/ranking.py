"""Class rankings."""

from collections.abc import Iterable
from decimal import Decimal

from app.schemas.common import round_display
from app.schemas.report import CohortEntry, RankingResult

HUNDRED = Decimal("100")
ONE_PLACE = Decimal("0.1")


def percentile(position: int, total_students: int) -> Decimal:
    """Share of the cohort ranked strictly below the given position."""
    if total_students <= 0:
        return Decimal("0")
    value = Decimal(total_students - position) / Decimal(total_students) * HUNDRED
    value = min(max(value, Decimal("0")), HUNDRED)
    return round_display(value, ONE_PLACE)


def rank(cohort: Iterable[CohortEntry]) -> dict[int, RankingResult]:
    """Rank a cohort by descending aggregate score.

    Ties share a position and the next distinct score skips ahead
    (90, 90, 80 rank 1, 1, 3). Equal scores are listed by student id.
    """
    entries = sorted(cohort, key=lambda e: (-e.aggregate_score, e.student_id))
    if len({e.student_id for e in entries}) != len(entries):
        raise ValueError("a student may appear only once in a ranking cohort")

    total = len(entries)
    results: dict[int, RankingResult] = {}
    position = 0
    previous_score = None
    for index, entry in enumerate(entries, start=1):
        if entry.aggregate_score != previous_score:
            position = index
            previous_score = entry.aggregate_score
        results[entry.student_id] = RankingResult(
            position=position,
            total_students=total,
            percentile=percentile(position, total),
        )
    return results
