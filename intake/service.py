"""Wiring of clients, stores and pipeline stages from a config bundle."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from intake.common.config_loader import ConfigBundle
from intake.common.http import HttpClient, RateLimiter, RetryConfig, TimeoutConfig
from intake.common.models import ProcessingResult
from intake.files.pipeline import FilePipeline
from intake.forms.classifier import build_classifier
from intake.forms.client import FormsApiClient
from intake.pipeline.batch import entity_type_for_action, run_batch
from intake.pipeline.processing import IntakeContext
from intake.resolve.resolver import EntityResolver
from intake.store.base import BlobStore, EntityStore
from intake.store.filesystem import JsonEntityStore, LocalBlobStore


@dataclass
class Services:
    bundle: ConfigBundle
    http: HttpClient
    entity_store: EntityStore
    blob_store: BlobStore
    context: IntakeContext

    def api_client(self) -> FormsApiClient:
        api = self.bundle.settings["api"]
        timeout = float(api["timeout_seconds"])
        return FormsApiClient(
            self.http,
            base_url=api["base_url"],
            api_key=self.bundle.api_key(),
            page_size=int(api["page_size"]),
            timeout=TimeoutConfig(connect=timeout, read=timeout),
        )

    def run_action(
        self,
        action: str,
        form_ids: list[str] | None,
        *,
        run_id: str,
        cancel_event: threading.Event | None = None,
        submission_limit: int | None = None,
    ) -> ProcessingResult:
        entity_type = entity_type_for_action(action)
        if not form_ids:
            form_ids = self.bundle.form_ids_for(entity_type)
        return run_batch(
            action,
            list(form_ids),
            self.context,
            self.api_client(),
            run_id=run_id,
            cancel_event=cancel_event,
            submission_limit=submission_limit,
        )

    def close(self) -> None:
        self.http.close()


def build_http_client(bundle: ConfigBundle) -> HttpClient:
    api = bundle.settings["api"]
    timeout = float(api["timeout_seconds"])
    return HttpClient(
        timeout=TimeoutConfig(connect=timeout, read=timeout),
        retry=RetryConfig(max_attempts=int(api.get("max_attempts", 3))),
        limiter=RateLimiter(bundle.settings["rate_limits"]),
    )


def build_services(
    bundle: ConfigBundle,
    *,
    logger: logging.Logger,
    data_dir: Path | None = None,
    entity_store: EntityStore | None = None,
    blob_store: BlobStore | None = None,
    http_client: HttpClient | None = None,
) -> Services:
    if (entity_store is None or blob_store is None) and data_dir is None:
        raise ValueError("data_dir is required when stores are not supplied")
    bucket = bundle.settings["storage"]["bucket"]
    entity_store = entity_store or JsonEntityStore(data_dir / "store")
    blob_store = blob_store or LocalBlobStore(data_dir / "blobs", bucket=bucket)
    http = http_client or build_http_client(bundle)

    files_cfg = bundle.settings["files"]
    download_timeout = float(files_cfg["download_timeout_seconds"])
    file_pipeline = FilePipeline(
        http,
        blob_store,
        entity_store,
        form_type_categories=bundle.forms["form_type_categories"],
        categorization_confidence=int(files_cfg["categorization_confidence"]),
        download_timeout=TimeoutConfig(connect=10, read=download_timeout),
        logger=logger,
    )
    context = IntakeContext(
        classifier=build_classifier(bundle.form_registry(), bundle.forms["keywords"]),
        resolver=EntityResolver(entity_store, logger=logger),
        file_pipeline=file_pipeline,
        logger=logger,
    )
    return Services(
        bundle=bundle,
        http=http,
        entity_store=entity_store,
        blob_store=blob_store,
        context=context,
    )
