"""Submission boundary checks.

Nothing reaches the merge engine or the database without passing through
here; a rejected submission is refused whole.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas.assessment import AssessmentRecord, PartialAssessmentRecord

logger = logging.getLogger(__name__)


def error_details(exc: PydanticValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into field/message pairs."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "__root__",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def parse_submission(payload: dict[str, Any]) -> PartialAssessmentRecord:
    """Validate a raw submission payload."""
    try:
        return PartialAssessmentRecord.model_validate(payload)
    except PydanticValidationError as exc:
        details = error_details(exc)
        logger.info(f"Rejected submission: {details}")
        raise ValidationError("Invalid assessment submission", {"errors": details})


def ensure_valid(record: AssessmentRecord) -> AssessmentRecord:
    """Re-check a merged record against every record invariant."""
    try:
        return AssessmentRecord.model_validate(record.model_dump())
    except PydanticValidationError as exc:
        details = error_details(exc)
        logger.info(f"Rejected merged record {record.key}: {details}")
        raise ValidationError("Submission conflicts with stored marks", {"errors": details})
