"""Semester and annual rollups.

Reports are often requested mid-year, before every term is recorded. The
rollup never blocks on missing terms: when the year is incomplete the verdict
falls back to the latest semester that has a positive average.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal

from app.schemas.assessment import AssessmentRecord, ComponentScores, Semester
from app.schemas.report import OverallStatistics, RollupResult, SubjectInfo
from app.services.aggregator import ZERO, aggregate

SEMESTERS = tuple(Semester)
FALLBACK_ORDER = tuple(reversed(SEMESTERS))


def _as_decimal(value: Decimal | float | int | None) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _positive(value: Decimal | None) -> bool:
    return value is not None and not value.is_nan() and value > 0


def rollup(per_semester: Mapping[Semester, Decimal | None]) -> RollupResult:
    """Combine one subject's semester averages into an annual figure."""
    averages = {semester: _as_decimal(per_semester.get(semester)) for semester in SEMESTERS}

    if all(_positive(value) for value in averages.values()):
        return RollupResult(
            annual_average=sum(averages.values(), ZERO) / len(SEMESTERS),
            used_annual=True,
        )

    for semester in FALLBACK_ORDER:
        if _positive(averages[semester]):
            return RollupResult(
                fallback_semester=semester,
                fallback_average=averages[semester],
            )
    return RollupResult()


def scores_by_subject(
    records: Iterable[AssessmentRecord],
) -> dict[int, dict[Semester, ComponentScores]]:
    """Aggregate one student's records, keyed by subject then semester."""
    subjects: dict[int, dict[Semester, ComponentScores]] = defaultdict(dict)
    for record in records:
        subjects[record.subject_id][record.semester] = aggregate(record)
    return dict(subjects)


def subject_rollup(terms: Mapping[Semester, ComponentScores]) -> RollupResult:
    """Rollup of one subject from its aggregated semesters."""
    return rollup({semester: scores.weighted_total for semester, scores in terms.items()})


def annual_subject_average(terms: Mapping[Semester, ComponentScores]) -> Decimal:
    """Figure a subject contributes to the annual totals.

    The annual average when all three semesters are in, otherwise the
    fallback semester's average, otherwise zero.
    """
    return subject_rollup(terms).verdict_average or ZERO


def overall_statistics(
    averages: Mapping[int, Decimal],
    subjects: Mapping[int, SubjectInfo],
) -> OverallStatistics:
    """Totals across subjects for one scope, keyed by subject id."""
    if not averages:
        return OverallStatistics()

    total_marks = sum(averages.values(), ZERO)
    total_credits = sum(
        subjects[subject_id].credits if subject_id in subjects else 0
        for subject_id in averages
    )
    return OverallStatistics(
        total_credits=total_credits,
        total_marks=total_marks,
        overall_average=total_marks / len(averages),
        subject_count=len(averages),
    )


def semester_statistics(
    scores: Mapping[int, Mapping[Semester, ComponentScores]],
    semester: Semester,
    subjects: Mapping[int, SubjectInfo],
) -> OverallStatistics | None:
    """Totals for one semester, or None when nothing was recorded in it."""
    averages = {
        subject_id: terms[semester].weighted_total
        for subject_id, terms in scores.items()
        if semester in terms
    }
    if not averages:
        return None
    return overall_statistics(averages, subjects)


def annual_statistics(
    scores: Mapping[int, Mapping[Semester, ComponentScores]],
    subjects: Mapping[int, SubjectInfo],
) -> OverallStatistics | None:
    """Totals for the year, or None when nothing was recorded at all."""
    if not scores:
        return None
    averages = {
        subject_id: annual_subject_average(terms)
        for subject_id, terms in scores.items()
    }
    return overall_statistics(averages, subjects)
