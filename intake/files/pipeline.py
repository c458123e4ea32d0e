"""Download, categorize, store and index files attached to a submission."""

from __future__ import annotations

import logging
import mimetypes
import re
from typing import Callable, Mapping

from intake.common.constants import FILE_ASSET
from intake.common.errors import PipelineError
from intake.common.http import HttpClient, TimeoutConfig
from intake.common.logging import get_logger, log_event
from intake.common.models import FileAsset, FileOutcome
from intake.common.time_utils import epoch_millis, utc_timestamp_iso
from intake.files.categorize import build_storage_path, categorize, filename_from_url
from intake.forms.answers import AnswerBag, FileListValue, TextValue
from intake.store.base import BlobStore, EntityStore

DEFAULT_MIME_TYPE = "application/octet-stream"
_UPLOAD_WORD_RE = re.compile(r"\b(?:files?|uploads?|uploaded|attachments?)\b")


def _looks_like_upload(label: str) -> bool:
    return _UPLOAD_WORD_RE.search(label.lower()) is not None


def extract_file_urls(answers: AnswerBag) -> list[str]:
    urls: list[str] = []
    for entry in answers:
        if isinstance(entry.value, FileListValue):
            candidates = list(entry.value.urls)
        elif isinstance(entry.value, TextValue) and _looks_like_upload(entry.label):
            candidates = [entry.value.text.strip()]
        else:
            continue
        for url in candidates:
            if url.startswith(("http://", "https://")) and url not in urls:
                urls.append(url)
    return urls


def _guess_mime_type(filename: str, reported: str | None) -> str:
    if reported:
        return reported
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_MIME_TYPE


class FilePipeline:
    def __init__(
        self,
        http_client: HttpClient,
        blob_store: BlobStore,
        entity_store: EntityStore,
        *,
        form_type_categories: Mapping[str, str] | None = None,
        categorization_confidence: int = 85,
        download_timeout: TimeoutConfig | None = None,
        clock: Callable[[], int] = epoch_millis,
        logger: logging.Logger | None = None,
    ) -> None:
        self.http = http_client
        self.blobs = blob_store
        self.entities = entity_store
        self.form_type_categories = dict(form_type_categories or {})
        self.categorization_confidence = categorization_confidence
        self.download_timeout = download_timeout or TimeoutConfig(connect=10, read=30)
        self.clock = clock
        self.logger = logger or get_logger()

    def process(
        self,
        answers: AnswerBag,
        *,
        entity_type: str,
        entity_id: str,
        form_type: str,
        submission_id: str,
        form_id: str,
        source: str,
        hint: str | None = None,
    ) -> FileOutcome:
        """Store every attached file; a failed file is recorded and the rest still run."""
        outcome = FileOutcome()
        for url in extract_file_urls(answers):
            try:
                asset = self._process_one(
                    url,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    form_type=form_type,
                    submission_id=submission_id,
                    form_id=form_id,
                    source=source,
                    hint=hint,
                )
            except PipelineError as exc:
                outcome.failures.append({"url": url, "error_code": exc.error_code, "error": str(exc)})
                log_event(
                    self.logger,
                    f"file failed: {url}",
                    level=logging.WARNING,
                    stage="files",
                    form_id=form_id,
                    submission_id=submission_id,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    event="FILE_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
                continue
            outcome.uploaded.append(asset)
            log_event(
                self.logger,
                f"file stored: {asset.storage_path}",
                stage="files",
                form_id=form_id,
                submission_id=submission_id,
                entity_type=entity_type,
                entity_id=entity_id,
                event="FILE_STORED",
                status="ok",
            )
        return outcome

    def _process_one(
        self,
        url: str,
        *,
        entity_type: str,
        entity_id: str,
        form_type: str,
        submission_id: str,
        form_id: str,
        source: str,
        hint: str | None,
    ) -> FileAsset:
        data, reported_type = self.http.get_bytes(url, category="downloads", timeout=self.download_timeout)
        filename = filename_from_url(url)
        mime_type = _guess_mime_type(filename, reported_type)
        category = categorize(
            filename,
            form_type,
            form_type_categories=self.form_type_categories,
            hint=hint,
        )
        storage_path = build_storage_path(entity_type, entity_id, category, filename, self.clock())

        self.blobs.put(storage_path, data, mime_type)

        asset = FileAsset(
            source_url=url,
            filename=filename,
            byte_size=len(data),
            mime_type=mime_type,
            category=category,
            storage_path=storage_path,
            storage_bucket=self.blobs.bucket,
            entity_type=entity_type,
            entity_id=entity_id,
            source_submission_id=submission_id,
            source_form_id=form_id,
            categorization_confidence=self.categorization_confidence,
            processed=True,
            source=source,
            processed_at=utc_timestamp_iso(),
        )
        # An upload without this row is an orphan; reconcile.py sweeps those.
        self.entities.insert(FILE_ASSET, asset.to_dict())
        return asset
