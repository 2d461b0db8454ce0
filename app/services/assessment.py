"""Assessment service for mark submissions."""

import logging

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.schemas.assessment import (
    AssessmentComponent,
    AssessmentKind,
    AssessmentRecord,
    BulkAssessmentSubmit,
    BulkSubmissionError,
    BulkSubmissionResponse,
    ExamScoreInput,
    PartialAssessmentRecord,
    PartialComprehensive,
    RecordKey,
    Semester,
    SubmissionResponse,
)
from app.services.aggregator import aggregate
from app.services.merge import merge
from app.services.repository import AssessmentRepository
from app.services.validation import ensure_valid

logger = logging.getLogger(__name__)

SEMESTER_ORDER = {semester: index for index, semester in enumerate(Semester)}


class AssessmentService:
    """Mark submission and lookup service."""

    def __init__(self, repository: AssessmentRepository):
        self.repository = repository

    def submit(self, submission: PartialAssessmentRecord) -> SubmissionResponse:
        """Merge a submission onto the stored record and persist the result.

        The stored snapshot is read with a row lock so the merged record is
        computed from the version it replaces. Either the whole merged record
        is written or nothing is. When another request creates the record
        between the read and the insert, the submission is merged once more
        onto that record.
        """
        try:
            return self._merge_and_store(submission)
        except ConflictError:
            logger.warning(f"Record {submission.key} was created concurrently; merging again")
            return self._merge_and_store(submission)

    def _merge_and_store(self, submission: PartialAssessmentRecord) -> SubmissionResponse:
        existing = self.repository.get_record(submission.key, for_update=True)
        record = ensure_valid(merge(existing, submission))
        self.repository.put_record(record)

        logger.info(
            f"{'Updated' if existing else 'Created'} assessment record {record.key}"
        )
        return SubmissionResponse(
            created=existing is None,
            record=record,
            scores=aggregate(record),
        )

    # ==========================================
    # Bulk Operations
    # ==========================================

    def bulk_submit(self, request: BulkAssessmentSubmit) -> BulkSubmissionResponse:
        """Apply several submissions, or none of them if any is invalid."""
        total = len(request.records)
        if total > settings.MAX_BULK_RECORDS:
            raise ValidationError(
                f"Bulk submission of {total} records exceeds the limit of {settings.MAX_BULK_RECORDS}"
            )

        # Merge everything before writing anything; later submissions for the
        # same key merge onto the earlier ones.
        merged: dict[RecordKey, AssessmentRecord] = {}
        errors = []
        for index, submission in enumerate(request.records):
            key = submission.key
            existing = merged.get(key) or self.repository.get_record(key, for_update=True)
            try:
                merged[key] = ensure_valid(merge(existing, submission))
            except ValidationError as e:
                errors.append(
                    BulkSubmissionError(
                        index=index,
                        student_id=submission.student_id,
                        subject_id=submission.subject_id,
                        errors=e.details.get("errors", []),
                    )
                )

        if errors:
            logger.warning(f"Bulk submission rejected: {len(errors)} of {total} records invalid")
            return BulkSubmissionResponse(
                total_records=total,
                successful=0,
                failed=len(errors),
                errors=errors,
                message="Validation failed. No records were saved.",
            )

        for record in merged.values():
            self.repository.put_record(record)

        logger.info(f"Bulk submission saved {len(merged)} records from {total} submissions")
        return BulkSubmissionResponse(
            total_records=total,
            successful=total,
            failed=0,
            message=f"Saved marks for {len(merged)} records. Existing marks were preserved.",
        )

    def record_exam_score(self, request: ExamScoreInput) -> SubmissionResponse:
        """File a graded exam's total as an FA, IA or CA mark.

        Re-recording the same exam replaces its earlier score since the entry
        key is the exam label and maximum.
        """
        fields = request.key.model_dump()
        if request.kind == AssessmentKind.CA:
            fields["comprehensive"] = PartialComprehensive(
                score=request.score, max_score=request.max_score
            )
        else:
            component = AssessmentComponent(
                label=request.label, max_score=request.max_score, score=request.score
            )
            slot = "formative" if request.kind == AssessmentKind.FA else "integrated"
            fields[slot] = [component]

        logger.info(f"Recording {request.kind.value} exam '{request.label}' for {request.key}")
        return self.submit(PartialAssessmentRecord(**fields))

    def get_record(self, key: RecordKey) -> AssessmentRecord:
        """Get the stored record for a key."""
        record = self.repository.get_record(key)
        if record is None:
            raise NotFoundError("Assessment record", str(key))
        return record

    def list_records(
        self,
        student_id: int,
        academic_year: str | None = None,
    ) -> list[AssessmentRecord]:
        """A student's records, in term order."""
        records = self.repository.list_records(
            student_id=student_id, academic_year=academic_year
        )
        return sorted(
            records,
            key=lambda r: (r.academic_year, SEMESTER_ORDER[r.semester], r.subject_id),
        )
