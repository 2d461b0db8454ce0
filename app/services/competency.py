"""Competency verdicts.

Two independent checks live here. ``classify`` produces the C/NYC label
printed on the report. ``is_competent`` only decides whether a figure is
highlighted, and leaves blank or zero figures unhighlighted even though their
verdict is NYC.
"""

import math
from decimal import Decimal

from app.schemas.assessment import SubjectCategory
from app.schemas.report import Observation

COMPETENT = "C"
NOT_YET_COMPETENT = "NYC"

COMPETENCY_THRESHOLDS = {
    SubjectCategory.CORE_SPECIFIC: Decimal("70"),
    SubjectCategory.CORE_GENERAL: Decimal("60"),
    SubjectCategory.COMPLEMENTARY: Decimal("50"),
}
DEFAULT_THRESHOLD = COMPETENCY_THRESHOLDS[SubjectCategory.COMPLEMENTARY]

Average = Decimal | float | int | None


def threshold_for(category: SubjectCategory | str | None) -> Decimal:
    """Pass mark of a category; unknown categories use the complementary one."""
    if category is None:
        return DEFAULT_THRESHOLD
    try:
        category = SubjectCategory(category)
    except ValueError:
        return DEFAULT_THRESHOLD
    return COMPETENCY_THRESHOLDS.get(category, DEFAULT_THRESHOLD)


def _is_blank(average: Average) -> bool:
    if average is None:
        return True
    if isinstance(average, Decimal):
        return average.is_nan()
    return isinstance(average, float) and math.isnan(average)


def classify(category: SubjectCategory | str | None, average: Average) -> Observation:
    """C when the average is strictly above the category threshold, else NYC."""
    if _is_blank(average):
        return NOT_YET_COMPETENT
    if average > threshold_for(category):
        return COMPETENT
    return NOT_YET_COMPETENT


def is_competent(category: SubjectCategory | str | None, average: Average) -> bool:
    """Whether a figure is shown without failure emphasis."""
    if _is_blank(average) or average == 0:
        return True
    return average > threshold_for(category)
