"""Historical pull: page through configured forms and drive every submission through the pipeline."""

from __future__ import annotations

import logging
import threading

from intake.common.constants import ACTIONS, SOURCE_BATCH
from intake.common.errors import ConfigError, PipelineError
from intake.common.logging import log_event
from intake.common.models import ProcessingResult
from intake.forms.client import FormsApiClient
from intake.pipeline.processing import IntakeContext, process_submission
from intake.resolve.resolver import display_name


def entity_type_for_action(action: str) -> str | None:
    if action not in ACTIONS:
        raise ConfigError(f"Unknown action: {action}")
    return ACTIONS[action]


def run_batch(
    action: str,
    form_ids: list[str],
    ctx: IntakeContext,
    api_client: FormsApiClient,
    *,
    run_id: str,
    cancel_event: threading.Event | None = None,
    submission_limit: int | None = None,
    with_files: bool = True,
) -> ProcessingResult:
    entity_type = entity_type_for_action(action)
    result = ProcessingResult(run_id=run_id, action=action)
    logger = ctx.logger

    log_event(logger, f"{action} start", run_id=run_id, stage="batch", event="RUN_START", status="ok", count=len(form_ids))

    for form_id in form_ids:
        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True
            break

        api_client.wait_between_forms()
        log_event(logger, f"form {form_id} start", run_id=run_id, stage="batch", form_id=form_id, event="FORM_START", status="ok")
        submissions = api_client.iter_submissions(form_id, limit=submission_limit)
        while True:
            try:
                submission = next(submissions)
            except StopIteration:
                break
            except Exception as exc:
                # Listing failed part-way; what was already processed stands.
                _record_failure(result, logger, exc, run_id=run_id, stage="list_submissions", form_id=form_id, submission_id=None)
                break

            result.total_processed += 1
            try:
                outcome = process_submission(
                    submission,
                    ctx,
                    source=SOURCE_BATCH,
                    entity_type=entity_type,
                    with_files=with_files,
                )
            except Exception as exc:
                _record_failure(
                    result,
                    logger,
                    exc,
                    run_id=run_id,
                    stage="process",
                    form_id=form_id,
                    submission_id=submission.submission_id,
                )
            else:
                result.record_resolution(
                    outcome.resolution,
                    submission_id=submission.submission_id,
                    form_id=form_id,
                    name=display_name(outcome.extraction),
                )
                if outcome.files is not None:
                    result.record_files(outcome.files)

            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                break

        if result.cancelled:
            break

    log_event(
        logger,
        result.message,
        run_id=run_id,
        stage="batch",
        event="RUN_END",
        status="cancelled" if result.cancelled else ("partial" if result.errors else "ok"),
        count=result.total_processed,
    )
    return result


def _record_failure(
    result: ProcessingResult,
    logger: logging.Logger,
    exc: Exception,
    *,
    run_id: str,
    stage: str,
    form_id: str,
    submission_id: str | None,
) -> None:
    result.record_error(stage=stage, error=exc, submission_id=submission_id, form_id=form_id)
    log_event(
        logger,
        f"{stage} failed for form {form_id}: {exc}",
        level=logging.ERROR,
        run_id=run_id,
        stage=stage,
        form_id=form_id,
        submission_id=submission_id,
        event="ITEM_FAIL",
        status="error",
        error_code=exc.error_code if isinstance(exc, PipelineError) else "UNEXPECTED_ERROR",
    )
