from decimal import Decimal

from app.schemas.common import round_display
from app.services.aggregator import aggregate, display_percentages, mean_percentage, percentage


def test_percentage_skips_missing_scores():
    assert percentage(None, Decimal("20")) is None
    assert percentage(Decimal("5"), Decimal("0")) is None
    assert percentage(Decimal("5"), Decimal("20")) == Decimal("25")


def test_formative_only_record(make_record):
    record = make_record(formative=[("Quiz", 20, "17.5")])

    result = aggregate(record)

    assert result.fa_pct == Decimal("87.5")
    assert result.ia_pct == 0
    assert result.ca_pct == 0
    assert round_display(result.weighted_total) == Decimal("26.25")


def test_unentered_components_do_not_dilute_mean(make_record):
    record = make_record(formative=[("Quiz 1", 10, 8), ("Quiz 2", 10, None)])

    assert mean_percentage(record.formative) == Decimal("80")


def test_weighted_total_uses_fixed_weights(make_record):
    record = make_record(
        formative=[("Quiz 1", 10, 10), ("Quiz 2", 20, 10)],
        integrated=[("Project", 50, 40)],
        ca=60,
    )

    result = aggregate(record)

    assert result.fa_pct == Decimal("75")
    assert result.ia_pct == Decimal("80")
    assert result.ca_pct == Decimal("60")
    # 75 * 0.3 + 80 * 0.4 + 60 * 0.3
    assert result.weighted_total == Decimal("72.5")


def test_empty_record_scores_zero(make_record):
    result = aggregate(make_record())

    assert result.weighted_total == 0


def test_weighted_total_stays_within_bounds(make_record):
    perfect = make_record(
        formative=[("A", 7, 7), ("B", 3, 3)],
        integrated=[("P", 9, 9)],
        ca=33,
        ca_max=33,
    )
    zero = make_record(formative=[("A", 7, 0)], integrated=[("P", 9, 0)], ca=0)

    assert aggregate(perfect).weighted_total == Decimal("100")
    assert aggregate(zero).weighted_total == Decimal("0")


def test_full_precision_is_kept_until_display(make_record):
    record = make_record(formative=[("A", 3, 1)])

    result = aggregate(record)

    assert result.fa_pct != round_display(result.fa_pct)
    assert display_percentages(result).fa == Decimal("33.33")
    assert display_percentages(result).avg == Decimal("10.00")
