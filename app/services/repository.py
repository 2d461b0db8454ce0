"""Storage of assessment records and subject metadata.

The scoring engine never performs I/O. Services receive one of these
repositories and do all fetching and storing through it.
"""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.models.assessment import MarkRecord
from app.models.subject import Subject
from app.schemas.assessment import AssessmentRecord, RecordKey, Semester
from app.schemas.report import SubjectInfo


class AssessmentRepository(Protocol):
    """Storage operations the assessment services depend on."""

    def get_record(self, key: RecordKey, for_update: bool = False) -> AssessmentRecord | None:
        ...

    def put_record(self, record: AssessmentRecord) -> AssessmentRecord:
        """Store a record, raising ConflictError if its key was inserted concurrently."""

    def list_records(
        self,
        *,
        student_id: int | None = None,
        class_id: int | None = None,
        academic_year: str | None = None,
        semester: Semester | None = None,
    ) -> list[AssessmentRecord]:
        ...

    def get_subjects(self, subject_ids: Iterable[int]) -> dict[int, SubjectInfo]:
        ...


def _matches(record: AssessmentRecord, **filters) -> bool:
    return all(
        value is None or getattr(record, name) == value
        for name, value in filters.items()
    )


class InMemoryAssessmentRepository:
    """Dictionary-backed repository for batch jobs and tests."""

    def __init__(
        self,
        records: Iterable[AssessmentRecord] = (),
        subjects: Iterable[SubjectInfo] = (),
    ):
        self._records: dict[RecordKey, AssessmentRecord] = {r.key: r for r in records}
        self._subjects: dict[int, SubjectInfo] = {s.subject_id: s for s in subjects}

    def get_record(self, key: RecordKey, for_update: bool = False) -> AssessmentRecord | None:
        return self._records.get(key.key)

    def put_record(self, record: AssessmentRecord) -> AssessmentRecord:
        self._records[record.key] = record
        return record

    def list_records(
        self,
        *,
        student_id: int | None = None,
        class_id: int | None = None,
        academic_year: str | None = None,
        semester: Semester | None = None,
    ) -> list[AssessmentRecord]:
        return [
            record
            for record in self._records.values()
            if _matches(
                record,
                student_id=student_id,
                class_id=class_id,
                academic_year=academic_year,
                semester=semester,
            )
        ]

    def add_subject(self, subject: SubjectInfo) -> None:
        self._subjects[subject.subject_id] = subject

    def get_subjects(self, subject_ids: Iterable[int]) -> dict[int, SubjectInfo]:
        return {sid: self._subjects[sid] for sid in subject_ids if sid in self._subjects}


class SqlAssessmentRepository:
    """SQLAlchemy-backed repository."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _components_to_json(components) -> list[dict]:
        return [component.model_dump(mode="json") for component in components]

    @staticmethod
    def _row_to_record(row: MarkRecord) -> AssessmentRecord:
        return AssessmentRecord.model_validate({
            "student_id": row.student_id,
            "subject_id": row.subject_id,
            "class_id": row.class_id,
            "academic_year": row.academic_year,
            "semester": row.semester,
            "formative": row.formative or [],
            "integrated": row.integrated or [],
            "comprehensive": row.comprehensive or {},
        })

    def _get_row(self, key: RecordKey, for_update: bool = False) -> MarkRecord | None:
        query = select(MarkRecord).where(
            MarkRecord.student_id == key.student_id,
            MarkRecord.subject_id == key.subject_id,
            MarkRecord.class_id == key.class_id,
            MarkRecord.academic_year == key.academic_year,
            MarkRecord.semester == key.semester,
        )
        if for_update:
            # Locks an existing row only; first inserts are guarded by the unique key
            query = query.with_for_update()
        result = self.db.execute(query)
        return result.scalar_one_or_none()

    def get_record(self, key: RecordKey, for_update: bool = False) -> AssessmentRecord | None:
        row = self._get_row(key, for_update=for_update)
        if row is None:
            return None
        return self._row_to_record(row)

    def _fill_row(self, row: MarkRecord, record: AssessmentRecord) -> None:
        row.formative = self._components_to_json(record.formative)
        row.integrated = self._components_to_json(record.integrated)
        row.comprehensive = record.comprehensive.model_dump(mode="json")

    def put_record(self, record: AssessmentRecord) -> AssessmentRecord:
        row = self._get_row(record.key)
        if row is not None:
            self._fill_row(row, record)
            self.db.flush()
            return record

        row = MarkRecord(
            student_id=record.student_id,
            subject_id=record.subject_id,
            class_id=record.class_id,
            academic_year=record.academic_year,
            semester=record.semester,
        )
        self._fill_row(row, record)
        try:
            # A failed insert only rolls back its own savepoint
            with self.db.begin_nested():
                self.db.add(row)
        except IntegrityError:
            raise ConflictError("Assessment record", str(record.key))
        return record

    def list_records(
        self,
        *,
        student_id: int | None = None,
        class_id: int | None = None,
        academic_year: str | None = None,
        semester: Semester | None = None,
    ) -> list[AssessmentRecord]:
        query = select(MarkRecord)
        if student_id is not None:
            query = query.where(MarkRecord.student_id == student_id)
        if class_id is not None:
            query = query.where(MarkRecord.class_id == class_id)
        if academic_year is not None:
            query = query.where(MarkRecord.academic_year == academic_year)
        if semester is not None:
            query = query.where(MarkRecord.semester == semester)

        query = query.order_by(MarkRecord.student_id, MarkRecord.subject_id, MarkRecord.semester)
        result = self.db.execute(query)
        return [self._row_to_record(row) for row in result.scalars().all()]

    def get_subjects(self, subject_ids: Iterable[int]) -> dict[int, SubjectInfo]:
        ids = set(subject_ids)
        if not ids:
            return {}
        result = self.db.execute(select(Subject).where(Subject.id.in_(ids)))
        return {
            subject.id: SubjectInfo(
                subject_id=subject.id,
                code=subject.code,
                title=subject.name,
                credits=subject.credits or 0,
                category=subject.category,
            )
            for subject in result.scalars().all()
        }
