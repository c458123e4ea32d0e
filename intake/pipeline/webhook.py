"""Single-submission entry point for provider webhooks."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from intake.common.constants import SOURCE_WEBHOOK
from intake.common.errors import NoMatchError, PipelineError, WebhookPayloadError
from intake.common.logging import log_event
from intake.forms.answers import Submission, decode_answers, is_question_key
from intake.pipeline.processing import IntakeContext, process_submission
from intake.resolve.resolver import NO_MATCH, SKIPPED, display_name

SUCCESS = "success"
NO_ENTITY_MATCH = "no_entity_match"
ERROR = "error"


@dataclass
class WebhookOutcome:
    status: str
    submission_id: str
    form_id: str
    form_type: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    entity_name: str | None = None
    action: str | None = None
    files_uploaded: int = 0
    files: list[dict[str, Any]] = field(default_factory=list)
    file_failures: list[dict[str, Any]] = field(default_factory=list)
    extracted: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "submission_id": self.submission_id,
            "form_id": self.form_id,
            "form_type": self.form_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "action": self.action,
            "files_uploaded": self.files_uploaded,
            "files": self.files,
            "file_failures": self.file_failures,
            "extracted": self.extracted,
            "error": self.error,
            "error_code": self.error_code,
        }


def _raw_request(payload: Mapping[str, Any]) -> dict[str, Any]:
    raw = payload.get("rawRequest")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise WebhookPayloadError("rawRequest is not valid JSON") from exc
    return raw if isinstance(raw, dict) else {}


def parse_webhook_payload(payload: Mapping[str, Any]) -> Submission:
    """Decode a webhook body, accepting fields at the top level or under ``rawRequest``."""
    if not isinstance(payload, Mapping):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    raw = _raw_request(payload)
    submission_id = payload.get("submissionID") or raw.get("submissionID")
    form_id = payload.get("formID") or raw.get("formID")
    if not submission_id or not form_id:
        raise WebhookPayloadError("Missing submission ID or form ID from webhook")

    answers = payload.get("answers") or raw.get("answers")
    if answers is None:
        # rawRequest mixes qN_ answers with envelope keys such as uploadServerUrl and slug.
        answers = {k: v for k, v in raw.items() if is_question_key(k)}
    if not isinstance(answers, Mapping):
        raise WebhookPayloadError("Webhook answers must be an object")
    return Submission(form_id=str(form_id), submission_id=str(submission_id), answers=decode_answers(answers))


def handle_webhook(payload: Mapping[str, Any], ctx: IntakeContext) -> WebhookOutcome:
    """Process one pushed submission. Only a malformed body raises; everything else is an outcome."""
    submission = parse_webhook_payload(payload)
    log_event(
        ctx.logger,
        f"webhook received for submission {submission.submission_id}",
        stage="webhook",
        form_id=submission.form_id,
        submission_id=submission.submission_id,
        event="WEBHOOK_START",
        status="ok",
    )

    try:
        outcome = process_submission(submission, ctx, source=SOURCE_WEBHOOK, lookup_participants_only=True)
    except Exception as exc:
        error_code = exc.error_code if isinstance(exc, PipelineError) else "UNEXPECTED_ERROR"
        log_event(
            ctx.logger,
            f"webhook failed for submission {submission.submission_id}: {exc}",
            level=logging.ERROR,
            stage="webhook",
            form_id=submission.form_id,
            submission_id=submission.submission_id,
            event="WEBHOOK_FAIL",
            status="error",
            error_code=error_code,
        )
        return WebhookOutcome(
            status=ERROR,
            submission_id=submission.submission_id,
            form_id=submission.form_id,
            error=str(exc),
            error_code=error_code,
        )

    resolution = outcome.resolution
    result = WebhookOutcome(
        status=SUCCESS,
        submission_id=submission.submission_id,
        form_id=submission.form_id,
        form_type=outcome.form_type,
        entity_type=resolution.entity_type,
        entity_id=resolution.entity_id,
        entity_name=display_name(outcome.extraction),
        action=resolution.action,
    )
    if resolution.action in (NO_MATCH, SKIPPED):
        result.status = NO_ENTITY_MATCH
        result.error_code = NoMatchError.error_code
        result.error = resolution.reason
        result.extracted = outcome.extraction.to_dict()
    elif outcome.files is not None:
        result.files_uploaded = len(outcome.files.uploaded)
        result.files = [asset.to_dict() for asset in outcome.files.uploaded]
        result.file_failures = list(outcome.files.failures)

    log_event(
        ctx.logger,
        f"webhook finished for submission {submission.submission_id}: {result.status}",
        stage="webhook",
        form_id=submission.form_id,
        submission_id=submission.submission_id,
        entity_type=result.entity_type,
        entity_id=result.entity_id,
        event="WEBHOOK_END",
        status=result.status,
        count=result.files_uploaded,
    )
    return result
