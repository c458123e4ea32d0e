from __future__ import annotations

import logging

import pytest

from intake.common.constants import PARTICIPANT
from intake.files.pipeline import FilePipeline
from intake.forms.classifier import build_classifier
from intake.pipeline.processing import IntakeContext
from intake.resolve.resolver import EntityResolver
from intake.store.memory import MemoryBlobStore, MemoryEntityStore
from tests.fixtures.fakes import Clock, FakeDownloader
from tests.fixtures.submissions import INVESTOR_FORM, LANDLORD_FORM, PARTICIPANT_FORM


@pytest.fixture
def registry() -> dict[str, str]:
    return {
        LANDLORD_FORM: "landlord",
        INVESTOR_FORM: "investor",
        PARTICIPANT_FORM: PARTICIPANT,
    }


@pytest.fixture
def classifier(registry):
    return build_classifier(
        registry,
        {"landlord": ["landlord", "property owner"], "investor": ["investor", "investment"]},
    )


@pytest.fixture
def entity_store() -> MemoryEntityStore:
    return MemoryEntityStore()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("sda_intake.tests")


@pytest.fixture
def ctx(classifier, entity_store, blob_store, downloader, logger) -> IntakeContext:
    pipeline = FilePipeline(
        downloader,
        blob_store,
        entity_store,
        form_type_categories={"landlord": "contract", "investor": "investment_brief"},
        clock=Clock(),
        logger=logger,
    )
    return IntakeContext(
        classifier=classifier,
        resolver=EntityResolver(entity_store, logger=logger),
        file_pipeline=pipeline,
        logger=logger,
    )
