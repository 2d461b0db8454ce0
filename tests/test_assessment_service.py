from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.schemas.assessment import (
    AssessmentKind,
    BulkAssessmentSubmit,
    ExamScoreInput,
    PartialAssessmentRecord,
    RecordKey,
    Semester,
)
from app.services.assessment import AssessmentService
from app.services.repository import InMemoryAssessmentRepository

KEY = {
    "student_id": 1,
    "subject_id": 1,
    "class_id": 10,
    "academic_year": "2024-2025",
    "semester": "Semester 1",
}


def submission(**fields):
    return PartialAssessmentRecord.model_validate({**KEY, **fields})


@pytest.fixture
def service(repository):
    return AssessmentService(repository)


def test_first_submission_creates_record(service, repository):
    result = service.submit(submission(formative=[{"label": "Quiz", "max_score": 20, "score": 17.5}]))

    assert result.created is True
    assert result.scores.fa_pct == Decimal("87.5")
    assert repository.get_record(RecordKey.model_validate(KEY)) == result.record


def test_resubmission_preserves_other_assessments(service):
    service.submit(submission(
        formative=[{"label": "Quiz 1", "max_score": 10, "score": 8}],
        comprehensive={"score": 70},
    ))

    result = service.submit(submission(formative=[{"label": "Quiz 2", "max_score": 10, "score": 6}]))

    assert result.created is False
    assert {c.label: c.score for c in result.record.formative} == {
        "Quiz 2": Decimal("6"),
        "Quiz 1": Decimal("8"),
    }
    assert result.record.comprehensive.score == Decimal("70")


def test_invalid_merge_leaves_stored_record_untouched(service, repository):
    service.submit(submission(comprehensive={"score": 30, "max_score": 40}))
    key = RecordKey.model_validate(KEY)
    before = repository.get_record(key)

    with pytest.raises(ValidationError):
        service.submit(submission(comprehensive={"score": 45}))

    assert repository.get_record(key) == before


def test_bulk_submit_saves_all_records(service, repository):
    request = BulkAssessmentSubmit(records=[
        submission(comprehensive={"score": 50}),
        submission(student_id=2, comprehensive={"score": 60}),
        submission(formative=[{"label": "Quiz", "max_score": 10, "score": 9}]),
    ])

    result = service.bulk_submit(request)

    assert result.successful == 3
    assert result.failed == 0
    first = repository.get_record(RecordKey.model_validate(KEY))
    # Later submissions for the same key merge onto earlier ones
    assert first.comprehensive.score == Decimal("50")
    assert first.formative[0].score == Decimal("9")
    assert len(repository.list_records()) == 2


def test_bulk_submit_is_all_or_nothing(service, repository):
    service.submit(submission(student_id=3, comprehensive={"score": 10, "max_score": 20}))
    request = BulkAssessmentSubmit(records=[
        submission(comprehensive={"score": 50}),
        submission(student_id=3, comprehensive={"score": 25}),
    ])

    result = service.bulk_submit(request)

    assert result.successful == 0
    assert result.failed == 1
    assert result.errors[0].index == 1
    assert result.errors[0].student_id == 3
    assert repository.get_record(RecordKey.model_validate(KEY)) is None


def test_bulk_submit_limit(service, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "MAX_BULK_RECORDS", 1)
    request = BulkAssessmentSubmit(records=[
        submission(comprehensive={"score": 50}),
        submission(student_id=2, comprehensive={"score": 60}),
    ])

    with pytest.raises(ValidationError):
        service.bulk_submit(request)


@pytest.mark.parametrize(
    "kind, slot",
    [(AssessmentKind.FA, "formative"), (AssessmentKind.IA, "integrated")],
)
def test_record_exam_score_into_list(service, kind, slot):
    exam = ExamScoreInput.model_validate({
        **KEY, "kind": kind, "label": "Online test 1", "score": 18, "max_score": 25,
    })

    result = service.record_exam_score(exam)

    component = getattr(result.record, slot)[0]
    assert (component.label, component.max_score, component.score) == (
        "Online test 1", Decimal("25"), Decimal("18"),
    )


def test_recording_same_exam_twice_replaces_score(service):
    exam = {**KEY, "kind": "FA", "label": "Online test 1", "max_score": 25}
    service.record_exam_score(ExamScoreInput.model_validate({**exam, "score": 10}))

    result = service.record_exam_score(ExamScoreInput.model_validate({**exam, "score": 20}))

    assert len(result.record.formative) == 1
    assert result.record.formative[0].score == Decimal("20")


def test_record_exam_score_as_comprehensive(service):
    exam = ExamScoreInput.model_validate({
        **KEY, "kind": "CA", "label": "Final exam", "score": 64, "max_score": 80,
    })

    result = service.record_exam_score(exam)

    assert result.record.comprehensive.score == Decimal("64")
    assert result.scores.ca_pct == Decimal("80")


def test_get_missing_record_raises(service):
    with pytest.raises(NotFoundError):
        service.get_record(RecordKey.model_validate(KEY))


def test_list_records_in_term_order(service):
    service.submit(submission(semester="Semester 3", comprehensive={"score": 1}))
    service.submit(submission(subject_id=2, comprehensive={"score": 2}))
    service.submit(submission(comprehensive={"score": 3}))
    service.submit(submission(student_id=2, comprehensive={"score": 4}))

    records = service.list_records(student_id=1)

    assert [(r.semester, r.subject_id) for r in records] == [
        (Semester.SEMESTER_1, 1),
        (Semester.SEMESTER_1, 2),
        (Semester.SEMESTER_3, 1),
    ]


class RacingRepository(InMemoryAssessmentRepository):
    """Another writer creates the record just before our first insert."""

    def __init__(self, concurrent_record, **kwargs):
        super().__init__(**kwargs)
        self.concurrent_record = concurrent_record

    def put_record(self, record):
        if self.concurrent_record is not None and self.get_record(record.key) is None:
            super().put_record(self.concurrent_record)
            self.concurrent_record = None
            raise ConflictError("Assessment record", str(record.key))
        return super().put_record(record)


def test_concurrent_first_submission_is_merged_again(make_record):
    concurrent = make_record(integrated=[("Project", 20, 15)])
    service = AssessmentService(RacingRepository(concurrent))

    result = service.submit(submission(comprehensive={"score": 60}))

    assert result.created is False
    assert result.record.integrated[0].score == Decimal("15")
    assert result.record.comprehensive.score == Decimal("60")
