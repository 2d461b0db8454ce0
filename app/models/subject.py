"""Subject catalogue model."""

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin
from app.schemas.assessment import SubjectCategory


class Subject(Base, IDMixin, TimestampMixin):
    """Subject metadata used when scoring and grouping report cards."""

    __tablename__ = "subjects"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[SubjectCategory] = mapped_column(
        Enum(SubjectCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SubjectCategory.COMPLEMENTARY,
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, code={self.code}, category={self.category})>"
