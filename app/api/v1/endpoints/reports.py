"""Assessment report endpoints."""

from fastapi import APIRouter, Query

from app.core.dependencies import Reports
from app.schemas.assessment import Semester
from app.schemas.common import SuccessResponse
from app.schemas.report import ClassRankingResponse

router = APIRouter()


@router.get("/students/{student_id}", response_model=SuccessResponse)
def get_student_report(
    student_id: int,
    service: Reports,
    class_id: int = Query(..., gt=0),
    academic_year: str = Query(...),
):
    """
    Report-card data for one student.
    A student without marks yields `data: null` rather than an error.
    """
    report = service.student_report(student_id, class_id, academic_year)
    if report is None:
        return SuccessResponse(message="No assessment data for this student", data=None)
    return SuccessResponse(data=report.model_dump(mode="json"))


@router.get("/classes/{class_id}/ranking", response_model=ClassRankingResponse)
def get_class_ranking(
    class_id: int,
    service: Reports,
    academic_year: str = Query(...),
    semester: Semester | None = Query(None),
):
    """Rank the students of a class for the year, or for one semester."""
    return service.class_ranking(class_id, academic_year, semester)
