"""Report and ranking schemas."""

from decimal import Decimal
from typing import Literal

from pydantic import Field

from app.schemas.assessment import Semester, SubjectCategory
from app.schemas.common import BaseSchema, FrozenSchema

Observation = Literal["C", "NYC"]


class SubjectInfo(FrozenSchema):
    """Subject metadata supplied by the catalogue."""

    subject_id: int
    code: str = ""
    title: str = ""
    credits: int = 0
    category: SubjectCategory = SubjectCategory.COMPLEMENTARY


# ==========================================
# Engine results
# ==========================================

class RollupResult(FrozenSchema):
    """Annual figure for one subject, or the semester it falls back to."""

    annual_average: Decimal | None = None
    used_annual: bool = False
    fallback_semester: Semester | None = None
    fallback_average: Decimal | None = None

    @property
    def verdict_average(self) -> Decimal | None:
        """Average the competency verdict is taken from."""
        if self.used_annual:
            return self.annual_average
        return self.fallback_average


class CohortEntry(FrozenSchema):
    """One student's score within a ranking cohort."""

    student_id: int
    aggregate_score: Decimal


class RankingResult(BaseSchema):
    """Position of a student within a cohort."""

    position: int
    total_students: int
    percentile: Decimal


class OverallStatistics(BaseSchema):
    """Totals for one student across all subjects in a scope."""

    total_credits: int = 0
    total_marks: Decimal = Decimal("0")
    overall_average: Decimal = Decimal("0")
    subject_count: int = 0


# ==========================================
# Report structures
# ==========================================

class ComponentPercentages(BaseSchema):
    """Per-term percentages as shown on the report card."""

    fa: Decimal
    la: Decimal
    ca: Decimal
    avg: Decimal


class SemesterResult(BaseSchema):
    """One subject's figures for one semester."""

    subject_id: int
    semester: Semester
    percentage_by_component: ComponentPercentages
    observation: Observation | None = None


class SubjectReport(BaseSchema):
    """One subject's row on the report card."""

    subject_id: int
    code: str
    title: str
    credits: int
    category: SubjectCategory
    terms: dict[Semester, ComponentPercentages] = {}
    annual_average: Decimal | None = None
    used_annual: bool = False
    observation: Observation | None = None
    flagged: bool = False


class SemesterSummary(BaseSchema):
    """A student's totals and rank for one semester."""

    semester: Semester
    total_marks: Decimal
    max_marks: int
    percentage: Decimal
    subject_count: int
    total_credits: int
    ranking: RankingResult | None = None


class SubjectCategories(BaseSchema):
    """Subjects grouped the way the report card prints them."""

    core_specific: list[SubjectReport] = []
    core_general: list[SubjectReport] = []
    complementary: list[SubjectReport] = []


class StudentReport(BaseSchema):
    """Everything the report assembler needs for one student."""

    student_id: int
    class_id: int
    academic_year: str
    subjects: list[SubjectReport]
    semester_results: list[SemesterResult]
    semester_summaries: list[SemesterSummary]
    overall_statistics: OverallStatistics
    overall_ranking: RankingResult | None = None
    categories: SubjectCategories


class ClassRankingEntry(BaseSchema):
    """One ranked student within a class."""

    student_id: int
    total_marks: Decimal
    overall_average: Decimal
    total_credits: int
    subject_count: int
    position: int
    percentile: Decimal


class ClassRankingResponse(BaseSchema):
    """Class ranking for a year or a single semester."""

    class_id: int
    academic_year: str
    semester: Semester | None = None
    total_students: int = Field(0, ge=0)
    rankings: list[ClassRankingEntry] = []
