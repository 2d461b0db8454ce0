"""Common schema utilities and base classes."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

TWO_PLACES = Decimal("0.01")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class FrozenSchema(BaseSchema):
    """Immutable schema for engine inputs and results."""

    model_config = ConfigDict(frozen=True)


def round_display(value: Decimal | None, places: Decimal = TWO_PLACES) -> Decimal | None:
    """Round a full-precision figure for reports."""
    if value is None:
        return None
    return value.quantize(places, rounding=ROUND_HALF_UP)


class SuccessResponse(BaseSchema):
    """Standard success response."""

    success: bool = True
    message: str | None = None
    data: Any = None


class ErrorDetail(BaseSchema):
    """Error detail structure."""

    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseSchema):
    """Standard error response."""

    success: bool = False
    error: ErrorDetail
