"""Conversion of raw marks into percentages and a weighted subject total."""

from decimal import Decimal

from app.schemas.assessment import AssessmentComponent, AssessmentRecord, ComponentScores
from app.schemas.common import round_display
from app.schemas.report import ComponentPercentages

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Fixed regardless of how many assessments of each kind a subject has
FA_WEIGHT = Decimal("0.30")
IA_WEIGHT = Decimal("0.40")
CA_WEIGHT = Decimal("0.30")


def percentage(score: Decimal | None, max_score: Decimal | None) -> Decimal | None:
    """Score as a percentage of its maximum, or None when not computable."""
    if score is None or not max_score or max_score <= 0:
        return None
    return score / max_score * HUNDRED


def mean_percentage(components: list[AssessmentComponent]) -> Decimal:
    """Mean percentage over the entered components; 0 when none are entered."""
    values = [
        pct
        for pct in (percentage(c.score, c.max_score) for c in components)
        if pct is not None
    ]
    if not values:
        return ZERO
    return sum(values, ZERO) / len(values)


def aggregate(record: AssessmentRecord) -> ComponentScores:
    """Compute FA, IA and CA percentages and the weighted total of a record.

    Missing marks count as zero: a subject without integrated assessments
    still loses the IA share of its total.
    """
    fa_pct = mean_percentage(record.formative)
    ia_pct = mean_percentage(record.integrated)
    ca_pct = percentage(record.comprehensive.score, record.comprehensive.max_score) or ZERO

    return ComponentScores(
        fa_pct=fa_pct,
        ia_pct=ia_pct,
        ca_pct=ca_pct,
        weighted_total=fa_pct * FA_WEIGHT + ia_pct * IA_WEIGHT + ca_pct * CA_WEIGHT,
    )


def display_percentages(scores: ComponentScores) -> ComponentPercentages:
    """Round a record's scores to two places for the report card."""
    return ComponentPercentages(
        fa=round_display(scores.fa_pct),
        la=round_display(scores.ia_pct),
        ca=round_display(scores.ca_pct),
        avg=round_display(scores.weighted_total),
    )
