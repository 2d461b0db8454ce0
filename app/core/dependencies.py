"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Query

from app.core.database import DbSession
from app.schemas.assessment import RecordKey, Semester
from app.services.assessment import AssessmentService
from app.services.report import ReportService
from app.services.repository import SqlAssessmentRepository


def get_repository(
    db: DbSession,
) -> SqlAssessmentRepository:
    """Repository bound to the request's database session."""
    return SqlAssessmentRepository(db)


def get_assessment_service(
    repository: Annotated[SqlAssessmentRepository, Depends(get_repository)],
) -> AssessmentService:
    return AssessmentService(repository)


def get_report_service(
    repository: Annotated[SqlAssessmentRepository, Depends(get_repository)],
) -> ReportService:
    return ReportService(repository)


def get_record_key(
    student_id: int = Query(..., gt=0),
    subject_id: int = Query(..., gt=0),
    class_id: int = Query(..., gt=0),
    academic_year: str = Query(..., pattern=r"^\d{4}(-\d{4})?$"),
    semester: Semester = Query(...),
) -> RecordKey:
    """Record key from query parameters."""
    return RecordKey(
        student_id=student_id,
        subject_id=subject_id,
        class_id=class_id,
        academic_year=academic_year,
        semester=semester,
    )


# Type aliases for dependency injection
Assessments = Annotated[AssessmentService, Depends(get_assessment_service)]
Reports = Annotated[ReportService, Depends(get_report_service)]
RecordKeyQuery = Annotated[RecordKey, Depends(get_record_key)]
