"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import assessments, reports
from app.schemas.common import ErrorResponse

api_router = APIRouter(
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)

# Mark submissions
api_router.include_router(
    assessments.router,
    prefix="/assessments",
    tags=["Assessments"],
)

# Report cards and rankings
api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["Reports"],
)
