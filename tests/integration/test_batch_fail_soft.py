from __future__ import annotations

import threading

import pytest

from intake.common.errors import ConfigError, StorageError
from intake.pipeline.batch import run_batch
from tests.fixtures.fakes import FakeFormsApi
from tests.fixtures.submissions import (
    INVESTOR_FORM,
    LANDLORD_FORM,
    PARTICIPANT_FORM,
    investor_submission,
    landlord_submission,
    participant_submission,
)


@pytest.mark.integration
def test_batch_continues_after_a_form_fails_to_list(ctx, entity_store):
    api = FakeFormsApi({PARTICIPANT_FORM: [participant_submission("s-1")]}, failing={LANDLORD_FORM})

    result = run_batch("process_historical", [LANDLORD_FORM, PARTICIPANT_FORM], ctx, api, run_id="run-1")

    assert result.errors == 1
    assert result.created == 1
    assert result.total_processed == 1
    assert api.waits == 2
    assert result.outcomes[0]["stage"] == "list_submissions"
    assert len(entity_store.all("participant")) == 1


@pytest.mark.integration
def test_batch_counts_a_failing_submission_and_keeps_going(ctx, monkeypatch):
    original = ctx.resolver.resolve

    def flaky(extraction, *, submission_id, form_id, **kwargs):
        if submission_id == "s-2":
            raise StorageError("store unavailable")
        return original(extraction, submission_id=submission_id, form_id=form_id, **kwargs)

    monkeypatch.setattr(ctx.resolver, "resolve", flaky)
    api = FakeFormsApi(
        {
            PARTICIPANT_FORM: [
                participant_submission("s-1", name="Ann One", ndis_number="1"),
                participant_submission("s-2", name="Bob Two", ndis_number="2"),
                participant_submission("s-3", name="Cat Three", ndis_number="3"),
            ]
        }
    )

    result = run_batch("extract_participants", [PARTICIPANT_FORM], ctx, api, run_id="run-2")

    assert result.total_processed == 3
    assert result.created == 2
    assert result.errors == 1
    failed = [o for o in result.outcomes if o["action"] == "error"]
    assert failed == [
        {
            "submission_id": "s-2",
            "form_id": PARTICIPANT_FORM,
            "action": "error",
            "stage": "process",
            "error_code": "STORAGE_ERROR",
            "error": "store unavailable",
        }
    ]


@pytest.mark.integration
def test_second_run_updates_instead_of_duplicating(ctx, entity_store):
    first_api = FakeFormsApi({PARTICIPANT_FORM: [participant_submission("s-1")]})
    second_api = FakeFormsApi(
        {
            PARTICIPANT_FORM: [
                participant_submission(
                    "s-2",
                    extra={"7": {"text": "Preferred Location", "answer": "Geelong"}},
                )
            ]
        }
    )

    first = run_batch("extract_participants", [PARTICIPANT_FORM], ctx, first_api, run_id="run-a")
    second = run_batch("extract_participants", [PARTICIPANT_FORM], ctx, second_api, run_id="run-b")

    assert (first.created, first.updated) == (1, 0)
    assert (second.created, second.updated) == (0, 1)
    rows = entity_store.all("participant")
    assert len(rows) == 1
    assert rows[0]["name"] == "Jessica Teasdale"
    assert rows[0]["housing_preferences"] == "Preferred Location: Geelong"


@pytest.mark.integration
def test_landlord_without_email_is_skipped(ctx, entity_store):
    api = FakeFormsApi({LANDLORD_FORM: [landlord_submission("s-1", email=None)]})

    result = run_batch("extract_landlords", [LANDLORD_FORM], ctx, api, run_id="run-3")

    assert result.skipped == 1
    assert result.errors == 0
    assert entity_store.all("landlord") == []


@pytest.mark.integration
def test_batch_counts_uploads_and_failed_downloads(ctx, downloader, entity_store):
    urls = ["https://files.example/a.pdf", "https://files.example/b.pdf", "https://files.example/c.pdf"]
    downloader.failing.add(urls[1])
    api = FakeFormsApi({LANDLORD_FORM: [landlord_submission("s-1", uploads=urls)]})

    result = run_batch("extract_landlords", [LANDLORD_FORM], ctx, api, run_id="run-4")

    assert result.created == 1
    assert result.files_uploaded == 2
    assert result.errors == 1
    assets = entity_store.all("file_asset")
    assert {asset["category"] for asset in assets} == {"contract"}
    assert {asset["source"] for asset in assets} == {"historical_batch"}


@pytest.mark.integration
def test_batch_investor_defaults(ctx, entity_store):
    api = FakeFormsApi({INVESTOR_FORM: [investor_submission("s-1")]})

    result = run_batch("extract_investors", [INVESTOR_FORM], ctx, api, run_id="run-5")

    assert result.created == 1
    row = entity_store.all("investor")[0]
    assert row["available_capital"] == 250000.0
    assert row["risk_tolerance"] == "medium"


@pytest.mark.integration
def test_cancelled_run_reports_partial_progress(ctx, monkeypatch):
    cancel = threading.Event()
    original = ctx.resolver.resolve

    def cancel_after_first(extraction, **kwargs):
        resolution = original(extraction, **kwargs)
        cancel.set()
        return resolution

    monkeypatch.setattr(ctx.resolver, "resolve", cancel_after_first)
    api = FakeFormsApi(
        {
            PARTICIPANT_FORM: [
                participant_submission("s-1", name="Ann One", ndis_number="1"),
                participant_submission("s-2", name="Bob Two", ndis_number="2"),
            ],
            LANDLORD_FORM: [landlord_submission("s-3")],
        }
    )

    result = run_batch("process_historical", [PARTICIPANT_FORM, LANDLORD_FORM], ctx, api, run_id="run-6", cancel_event=cancel)

    assert result.cancelled is True
    assert result.total_processed == 1
    assert result.created == 1
    assert api.waits == 1


@pytest.mark.integration
def test_unknown_action_is_a_config_error(ctx):
    with pytest.raises(ConfigError):
        run_batch("extract_tenants", [], ctx, FakeFormsApi({}), run_id="run-7")
