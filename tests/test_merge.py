from decimal import Decimal

import pytest

from app.core.exceptions import InconsistentKeyError
from app.schemas.assessment import PartialAssessmentRecord, Semester
from app.services.merge import merge, to_submission


def partial(**fields):
    payload = {
        "student_id": 1,
        "subject_id": 1,
        "class_id": 10,
        "academic_year": "2024-2025",
        "semester": "Semester 1",
    }
    payload.update(fields)
    return PartialAssessmentRecord.model_validate(payload)


def scores(components):
    return {c.label: c.score for c in components}


def test_merge_onto_nothing_passes_submission_through():
    incoming = partial(formative=[{"label": "Quiz 1", "max_score": 20, "score": "15"}])

    merged = merge(None, incoming)

    assert scores(merged.formative) == {"Quiz 1": Decimal("15")}
    assert merged.integrated == []
    assert merged.comprehensive.score is None
    assert merged.comprehensive.max_score == Decimal("100")


def test_merge_onto_nothing_defaults_missing_ca_maximum():
    merged = merge(None, partial(comprehensive={"score": 40}))

    assert merged.comprehensive.score == Decimal("40")
    assert merged.comprehensive.max_score == Decimal("100")


def test_merge_preserves_untouched_components(make_record):
    existing = make_record(formative=[("A", 20, 10), ("B", 20, None)])
    incoming = partial(formative=[{"label": "A", "max_score": 20, "score": 12}])

    merged = merge(existing, incoming)

    assert scores(merged.formative) == {"A": Decimal("12"), "B": None}


def test_merge_keeps_stored_score_when_submission_is_blank(make_record):
    existing = make_record(formative=[("A", 20, 10), ("B", 20, 18)])
    incoming = partial(formative=[
        {"label": "A", "max_score": 20, "score": ""},
        {"label": "B", "max_score": 20, "score": 19},
    ])

    merged = merge(existing, incoming)

    assert scores(merged.formative) == {"A": Decimal("10"), "B": Decimal("19")}


def test_merge_treats_same_label_with_other_maximum_as_new_entry(make_record):
    existing = make_record(integrated=[("Project", 50, 40)])
    incoming = partial(integrated=[{"label": "Project", "max_score": 100, "score": 70}])

    merged = merge(existing, incoming)

    assert [(c.label, c.max_score, c.score) for c in merged.integrated] == [
        ("Project", Decimal("100"), Decimal("70")),
        ("Project", Decimal("50"), Decimal("40")),
    ]


def test_merge_appends_stored_entries_after_submitted_ones(make_record):
    existing = make_record(formative=[("Quiz 1", 10, 8), ("Quiz 2", 10, 6)])
    incoming = partial(formative=[
        {"label": "Quiz 3", "max_score": 10, "score": 9},
        {"label": "Quiz 2", "max_score": 10, "score": 7},
    ])

    merged = merge(existing, incoming)

    assert [c.label for c in merged.formative] == ["Quiz 3", "Quiz 2", "Quiz 1"]


def test_merge_without_lists_keeps_stored_lists(make_record):
    existing = make_record(formative=[("A", 20, 10)], integrated=[("P", 50, 30)])

    merged = merge(existing, partial(comprehensive={"score": 55}))

    assert merged.formative == existing.formative
    assert merged.integrated == existing.integrated
    assert merged.comprehensive.score == Decimal("55")


def test_merge_does_not_overwrite_ca_with_null(make_record):
    existing = make_record(ca=80)

    merged = merge(existing, partial(comprehensive={"score": None}))

    assert merged.comprehensive.score == Decimal("80")


def test_merge_keeps_ca_maximum_unless_given(make_record):
    existing = make_record(ca=30, ca_max=50)

    kept = merge(existing, partial(comprehensive={"score": 45}))
    replaced = merge(existing, partial(comprehensive={"score": 45, "max_score": 60}))

    assert kept.comprehensive.max_score == Decimal("50")
    assert replaced.comprehensive.max_score == Decimal("60")


def test_merge_is_idempotent(make_record):
    existing = make_record(
        formative=[("A", 20, 10), ("B", 20, None)],
        integrated=[("P", 50, 30)],
        ca=70,
    )
    incoming = partial(
        formative=[{"label": "B", "max_score": 20, "score": 14}, {"label": "C", "max_score": 10}],
        comprehensive={"score": None, "max_score": 100},
    )

    once = merge(existing, incoming)

    assert merge(once, incoming) == once


def test_merge_does_not_mutate_inputs(make_record):
    existing = make_record(formative=[("A", 20, 10)])
    snapshot = existing.model_copy(deep=True)

    merge(existing, partial(formative=[{"label": "A", "max_score": 20, "score": 1}]))

    assert existing == snapshot


def test_merge_rejects_mismatched_keys(make_record):
    existing = make_record(semester=Semester.SEMESTER_2)

    with pytest.raises(InconsistentKeyError):
        merge(existing, partial(comprehensive={"score": 10}))


def test_submission_round_trip_reproduces_record(make_record):
    record = make_record(
        formative=[("Quiz 1", 20, "17.5"), ("Quiz 2", 10, None)],
        integrated=[("Project", 50, 42)],
        ca=66,
        ca_max=80,
    )

    assert merge(None, to_submission(record)) == record
