from decimal import Decimal

import pytest

from app.schemas.report import CohortEntry
from app.services.ranking import percentile, rank


def cohort(*scores):
    return [
        CohortEntry(student_id=index, aggregate_score=Decimal(str(score)))
        for index, score in enumerate(scores, start=1)
    ]


def test_ties_share_position_and_skip_next():
    results = rank(cohort(90, 90, 80))

    assert [results[i].position for i in (1, 2, 3)] == [1, 1, 3]


def test_ranking_is_descending_regardless_of_input_order():
    results = rank(cohort(55, 91, 72.5))

    assert results[2].position == 1
    assert results[3].position == 2
    assert results[1].position == 3


def test_total_students_and_percentile():
    results = rank(cohort(90, 80, 70, 60))

    assert all(r.total_students == 4 for r in results.values())
    assert results[1].percentile == Decimal("75.0")
    assert results[4].percentile == Decimal("0.0")


def test_percentile_is_clamped():
    assert percentile(1, 1) == Decimal("0.0")
    assert percentile(0, 3) == Decimal("100.0")
    assert percentile(1, 0) == Decimal("0")


def test_empty_cohort():
    assert rank([]) == {}


def test_duplicate_student_is_rejected():
    entries = [
        CohortEntry(student_id=1, aggregate_score=Decimal("50")),
        CohortEntry(student_id=1, aggregate_score=Decimal("60")),
    ]

    with pytest.raises(ValueError):
        rank(entries)
