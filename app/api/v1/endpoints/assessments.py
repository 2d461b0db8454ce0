"""Assessment mark submission endpoints."""

from fastapi import APIRouter, Query, Response, status

from app.core.dependencies import Assessments, RecordKeyQuery
from app.schemas.assessment import (
    AssessmentRecord,
    BulkAssessmentSubmit,
    BulkSubmissionResponse,
    ExamScoreInput,
    PartialAssessmentRecord,
    SubmissionResponse,
)

router = APIRouter()


@router.post("", response_model=SubmissionResponse)
def submit_marks(
    request: PartialAssessmentRecord,
    service: Assessments,
    response: Response,
):
    """
    Submit FA, IA and/or CA marks for one student, subject and semester.
    Marks already stored for assessments not in the submission are kept.
    """
    result = service.submit(request)
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result


@router.post("/bulk", response_model=BulkSubmissionResponse)
def bulk_submit_marks(
    request: BulkAssessmentSubmit,
    service: Assessments,
    response: Response,
):
    """
    Submit marks for many records at once.
    If any record is invalid nothing is saved and every failure is reported.
    """
    result = service.bulk_submit(request)
    if result.failed:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return result


@router.post("/exam-scores", response_model=SubmissionResponse)
def record_exam_score(
    request: ExamScoreInput,
    service: Assessments,
):
    """Record a graded exam's total as an FA, IA or CA mark."""
    return service.record_exam_score(request)


@router.get("/record", response_model=AssessmentRecord)
def get_record(
    key: RecordKeyQuery,
    service: Assessments,
):
    """Get the stored marks for one record key."""
    return service.get_record(key)


@router.get("/students/{student_id}", response_model=list[AssessmentRecord])
def get_student_transcript(
    student_id: int,
    service: Assessments,
    academic_year: str | None = Query(None),
):
    """List a student's stored marks in term order."""
    return service.list_records(student_id, academic_year)
