"""Assessment record schemas.

Marks arrive from forms and spreadsheets as strings, numbers or blanks.
Every numeric field is normalized here into ``Decimal | None`` before any
scoring code sees it: ``""`` and ``None`` both mean "not entered", which is
never the same thing as ``0``.
"""

import enum
import math
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from app.schemas.common import BaseSchema, FrozenSchema


# ==========================================
# Constants
# ==========================================

DEFAULT_CA_MAX_SCORE = Decimal("100")

KEY_FIELDS = ("student_id", "subject_id", "class_id", "academic_year", "semester")


class Semester(str, enum.Enum):
    """Academic terms, in calendar order."""

    SEMESTER_1 = "Semester 1"
    SEMESTER_2 = "Semester 2"
    SEMESTER_3 = "Semester 3"


class SubjectCategory(str, enum.Enum):
    """Pedagogical category of a subject."""

    CORE_SPECIFIC = "CORE"
    CORE_GENERAL = "GENERAL"
    COMPLEMENTARY = "COMPLEMENTARY"

    @classmethod
    def _missing_(cls, value: object) -> "SubjectCategory | None":
        # Accept "CoreSpecific", "core_general", "Complementary", ...
        if isinstance(value, str):
            normalized = value.replace("_", "").replace(" ", "").upper()
            for member in cls:
                if normalized in (member.value, member.name.replace("_", "")):
                    return member
        return None


class AssessmentKind(str, enum.Enum):
    """Assessment families making up a subject mark."""

    FA = "FA"
    IA = "IA"
    CA = "CA"


def to_mark(value: Any) -> Decimal | None:
    """Normalize a raw form value into a mark."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    try:
        mark = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a number")
    if not mark.is_finite():
        raise ValueError("must be a finite number")
    return mark


def _check_range(score: Decimal | None, max_score: Decimal | None) -> None:
    if score is None or max_score is None:
        return
    if score < 0 or score > max_score:
        raise ValueError(f"score {score} must be between 0 and {max_score}")


def _check_unique(components: list["AssessmentComponent"] | None, name: str) -> None:
    seen = set()
    for component in components or []:
        if component.key in seen:
            raise ValueError(
                f"duplicate {name} assessment '{component.label}' out of {component.max_score}"
            )
        seen.add(component.key)


# ==========================================
# Components
# ==========================================

class AssessmentComponent(FrozenSchema):
    """One labelled FA or IA entry."""

    label: str = Field(..., min_length=1, max_length=100)
    max_score: Decimal = Field(
        ..., gt=0, validation_alias=AliasChoices("max_score", "maxScore")
    )
    score: Decimal | None = None

    @field_validator("max_score", "score", mode="before")
    @classmethod
    def normalize_mark(cls, v: Any) -> Decimal | None:
        return to_mark(v)

    @model_validator(mode="after")
    def validate_range(self) -> "AssessmentComponent":
        _check_range(self.score, self.max_score)
        return self

    @property
    def key(self) -> tuple[str, Decimal]:
        """Identity of the entry within its list."""
        return (self.label, self.max_score)


class ComprehensiveComponent(FrozenSchema):
    """The single end-of-term comprehensive assessment."""

    score: Decimal | None = None
    max_score: Decimal = Field(
        DEFAULT_CA_MAX_SCORE,
        gt=0,
        validation_alias=AliasChoices("max_score", "maxScore"),
    )

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> Decimal | None:
        return to_mark(v)

    @field_validator("max_score", mode="before")
    @classmethod
    def normalize_max_score(cls, v: Any) -> Decimal:
        mark = to_mark(v)
        return DEFAULT_CA_MAX_SCORE if mark is None else mark

    @model_validator(mode="after")
    def validate_range(self) -> "ComprehensiveComponent":
        _check_range(self.score, self.max_score)
        return self


class PartialComprehensive(FrozenSchema):
    """Comprehensive assessment as submitted; either field may be absent."""

    score: Decimal | None = None
    max_score: Decimal | None = Field(
        None, gt=0, validation_alias=AliasChoices("max_score", "maxScore")
    )

    @field_validator("score", "max_score", mode="before")
    @classmethod
    def normalize_mark(cls, v: Any) -> Decimal | None:
        return to_mark(v)

    @model_validator(mode="after")
    def validate_range(self) -> "PartialComprehensive":
        _check_range(self.score, self.max_score)
        return self


# ==========================================
# Records
# ==========================================

class RecordKey(FrozenSchema):
    """Identity of one student's marks in one subject and term."""

    student_id: int = Field(..., gt=0)
    subject_id: int = Field(..., gt=0)
    class_id: int = Field(..., gt=0)
    academic_year: str = Field(..., pattern=r"^\d{4}(-\d{4})?$", max_length=10)
    semester: Semester

    @property
    def key(self) -> "RecordKey":
        return RecordKey(**{name: getattr(self, name) for name in KEY_FIELDS})

    def __str__(self) -> str:
        return (
            f"student={self.student_id} subject={self.subject_id} class={self.class_id} "
            f"year={self.academic_year} semester={self.semester.value}"
        )


class AssessmentRecord(RecordKey):
    """Stored marks for one record key."""

    formative: list[AssessmentComponent] = []
    integrated: list[AssessmentComponent] = []
    comprehensive: ComprehensiveComponent = Field(default_factory=ComprehensiveComponent)

    @model_validator(mode="after")
    def validate_unique_components(self) -> "AssessmentRecord":
        _check_unique(self.formative, "formative")
        _check_unique(self.integrated, "integrated")
        return self


class PartialAssessmentRecord(RecordKey):
    """A submission carrying any subset of FA, IA and CA marks."""

    formative: list[AssessmentComponent] | None = Field(
        None, validation_alias=AliasChoices("formative", "FA")
    )
    integrated: list[AssessmentComponent] | None = Field(
        None, validation_alias=AliasChoices("integrated", "IA")
    )
    comprehensive: PartialComprehensive | None = Field(
        None, validation_alias=AliasChoices("comprehensive", "CA")
    )

    @model_validator(mode="after")
    def validate_unique_components(self) -> "PartialAssessmentRecord":
        _check_unique(self.formative, "formative")
        _check_unique(self.integrated, "integrated")
        return self


# ==========================================
# Submission requests and responses
# ==========================================

class BulkAssessmentSubmit(BaseSchema):
    """Several submissions applied all-or-nothing."""

    records: list[PartialAssessmentRecord] = Field(..., min_length=1)


class ExamScoreInput(RecordKey):
    """Total of a graded exam to file under FA, IA or CA."""

    kind: AssessmentKind
    label: str = Field(..., min_length=1, max_length=100)
    score: Decimal
    max_score: Decimal = Field(
        DEFAULT_CA_MAX_SCORE,
        gt=0,
        validation_alias=AliasChoices("max_score", "maxScore"),
    )

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> Decimal | None:
        return to_mark(v)

    @model_validator(mode="after")
    def validate_range(self) -> "ExamScoreInput":
        _check_range(self.score, self.max_score)
        return self


class ComponentScores(FrozenSchema):
    """Normalized percentages of one record, at full precision."""

    fa_pct: Decimal
    ia_pct: Decimal
    ca_pct: Decimal
    weighted_total: Decimal


class SubmissionResponse(BaseSchema):
    """Result of one accepted submission."""

    created: bool
    record: AssessmentRecord
    scores: ComponentScores


class BulkSubmissionError(BaseSchema):
    """Rejection detail for one record of a bulk submission."""

    index: int
    student_id: int
    subject_id: int
    errors: list[dict] = []


class BulkSubmissionResponse(BaseSchema):
    """Response for bulk submissions."""

    total_records: int
    successful: int
    failed: int
    errors: list[BulkSubmissionError] = []
    message: str
