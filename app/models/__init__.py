"""Database models package."""

from app.models.assessment import MarkRecord
from app.models.subject import Subject

__all__ = [
    # Assessments
    "MarkRecord",
    # Subjects
    "Subject",
]
