"""Assessment record model."""

from sqlalchemy import JSON, BigInteger, Enum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin
from app.schemas.assessment import Semester


class MarkRecord(Base, IDMixin, TimestampMixin):
    """FA, IA and CA marks of one student in one subject and term.

    FA and IA lists are stored as JSON arrays of
    ``{"label", "max_score", "score"}`` objects and CA as one
    ``{"score", "max_score"}`` object. Marks are kept as strings so they
    round-trip at the precision they were entered with.
    """

    __tablename__ = "assessment_records"

    student_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    class_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    academic_year: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    semester: Mapped[Semester] = mapped_column(
        Enum(Semester, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    formative: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    integrated: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    comprehensive: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: {"score": None, "max_score": "100"}
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "class_id", "academic_year", "semester",
            name="uq_assessment_record_key",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<MarkRecord(student_id={self.student_id}, subject_id={self.subject_id}, "
            f"semester={self.semester})>"
        )
