"""The classify, extract, resolve and store sequence shared by webhook and batch runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from intake.common.constants import PARTICIPANT
from intake.common.logging import get_logger
from intake.common.models import Extraction, FileOutcome, Resolution
from intake.extract.extractor import extract
from intake.files.pipeline import FilePipeline
from intake.forms.answers import Submission
from intake.forms.classifier import FormClassifier, document_hint
from intake.resolve.resolver import CREATED, MATCHED, UPDATED, EntityResolver


@dataclass
class IntakeContext:
    classifier: FormClassifier
    resolver: EntityResolver
    file_pipeline: FilePipeline | None = None
    logger: logging.Logger = field(default_factory=get_logger)


@dataclass(frozen=True)
class SubmissionOutcome:
    submission: Submission
    form_type: str
    extraction: Extraction
    resolution: Resolution
    files: FileOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "submission_id": self.submission.submission_id,
            "form_id": self.submission.form_id,
            "form_type": self.form_type,
            "resolution": self.resolution.to_dict(),
        }
        if self.files is not None:
            payload.update(self.files.to_dict())
        return payload


def process_submission(
    submission: Submission,
    ctx: IntakeContext,
    *,
    source: str,
    entity_type: str | None = None,
    lookup_participants_only: bool = False,
    with_files: bool = True,
) -> SubmissionOutcome:
    """Run one submission through the pipeline.

    ``entity_type`` forces the extractor instead of classifying the form.
    With ``lookup_participants_only`` set, a participant is matched but never
    created or changed; files attach to the match.
    """
    form_type = entity_type or ctx.classifier.classify(submission.form_id, submission.answers)
    extraction = extract(form_type, submission.answers)
    lookup_only = lookup_participants_only and extraction.entity_type == PARTICIPANT
    resolution = ctx.resolver.resolve(
        extraction,
        submission_id=submission.submission_id,
        form_id=submission.form_id,
        lookup_only=lookup_only,
    )

    files = None
    if with_files and ctx.file_pipeline is not None and resolution.action in (CREATED, UPDATED, MATCHED):
        files = ctx.file_pipeline.process(
            submission.answers,
            entity_type=extraction.entity_type,
            entity_id=resolution.entity_id,
            form_type=form_type,
            submission_id=submission.submission_id,
            form_id=submission.form_id,
            source=source,
            hint=document_hint(submission.answers),
        )
    return SubmissionOutcome(
        submission=submission,
        form_type=form_type,
        extraction=extraction,
        resolution=resolution,
        files=files,
    )
