"""Merging of incremental mark submissions.

Teachers upload marks one assessment at a time. A new submission must never
erase scores recorded earlier for other assessments of the same subject and
term, so submissions are merged onto the stored record instead of replacing
it.
"""

import logging

from app.core.exceptions import InconsistentKeyError
from app.schemas.assessment import (
    DEFAULT_CA_MAX_SCORE,
    AssessmentComponent,
    AssessmentRecord,
    ComprehensiveComponent,
    PartialAssessmentRecord,
    PartialComprehensive,
)

logger = logging.getLogger(__name__)


def merge_components(
    existing: list[AssessmentComponent],
    incoming: list[AssessmentComponent] | None,
) -> list[AssessmentComponent]:
    """Merge two FA or IA lists keyed by (label, max_score).

    Incoming entries come first, in submission order. An incoming entry with
    no score keeps the stored score. Stored entries the submission does not
    mention are appended unchanged.
    """
    if not incoming:
        return list(existing)

    stored = {component.key: component for component in existing}
    merged = []
    for component in incoming:
        previous = stored.get(component.key)
        if previous is not None and component.score is None:
            component = component.model_copy(update={"score": previous.score})
        merged.append(component)

    submitted = {component.key for component in incoming}
    merged.extend(c for c in existing if c.key not in submitted)
    return merged


def merge_comprehensive(
    existing: ComprehensiveComponent,
    incoming: PartialComprehensive | None,
) -> ComprehensiveComponent:
    """Overwrite the CA score and maximum only where the submission has them."""
    if incoming is None:
        return existing
    score = incoming.score if incoming.score is not None else existing.score
    max_score = incoming.max_score or existing.max_score
    # Not validated here: a bare score may exceed the stored maximum and is
    # rejected by ensure_valid before anything is written.
    return ComprehensiveComponent.model_construct(score=score, max_score=max_score)


def merge(
    existing: AssessmentRecord | None,
    incoming: PartialAssessmentRecord,
) -> AssessmentRecord:
    """Combine a submission with the stored record for the same key."""
    if existing is None:
        comprehensive = incoming.comprehensive or PartialComprehensive()
        return AssessmentRecord.model_construct(
            **incoming.key.model_dump(),
            formative=list(incoming.formative or []),
            integrated=list(incoming.integrated or []),
            comprehensive=ComprehensiveComponent.model_construct(
                score=comprehensive.score,
                max_score=comprehensive.max_score or DEFAULT_CA_MAX_SCORE,
            ),
        )

    if existing.key != incoming.key:
        logger.error(f"Refusing to merge {incoming.key} onto record {existing.key}")
        raise InconsistentKeyError(existing.key, incoming.key)

    return AssessmentRecord.model_construct(
        **existing.key.model_dump(),
        formative=merge_components(existing.formative, incoming.formative),
        integrated=merge_components(existing.integrated, incoming.integrated),
        comprehensive=merge_comprehensive(existing.comprehensive, incoming.comprehensive),
    )


def to_submission(record: AssessmentRecord) -> PartialAssessmentRecord:
    """Express a stored record in submission form."""
    return PartialAssessmentRecord.model_construct(
        **record.key.model_dump(),
        formative=list(record.formative),
        integrated=list(record.integrated),
        comprehensive=PartialComprehensive.model_construct(
            score=record.comprehensive.score,
            max_score=record.comprehensive.max_score,
        ),
    )
