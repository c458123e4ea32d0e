from __future__ import annotations

import json

import pytest

from intake.common.errors import StorageError, WebhookPayloadError
from intake.pipeline.webhook import handle_webhook, parse_webhook_payload
from tests.fixtures.submissions import LANDLORD_FORM, PARTICIPANT_FORM


def _payload(form_id: str, submission_id: str, raw_request: dict) -> dict:
    return {"formID": form_id, "submissionID": submission_id, "rawRequest": json.dumps(raw_request)}


def _participant_request() -> dict:
    return {
        "q3_participantName": {"first": "Jessica", "last": "Teasdale"},
        "q4_ndisNumber": "431187858",
        "q7_preferredLocation": "Geelong",
    }


@pytest.mark.integration
def test_landlord_webhook_creates_record_and_stores_files(ctx, entity_store, blob_store):
    payload = _payload(
        LANDLORD_FORM,
        "wh-1",
        {
            "q3_landlordDirectorName": {"first": "Lee", "last": "Owner"},
            "q5_landlordEmail": "lee@owner.example",
            "q9_uploadDocuments": ["https://files.example/uploads/lease.pdf"],
        },
    )

    outcome = handle_webhook(payload, ctx)

    assert outcome.success
    assert outcome.action == "created"
    assert outcome.entity_type == "landlord"
    assert outcome.entity_name == "Lee Owner"
    assert outcome.files_uploaded == 1
    assert outcome.files[0]["category"] == "contract"
    assert outcome.files[0]["source"] == "webhook"
    assert len(list(blob_store.list_paths())) == 1
    assert entity_store.all("landlord")[0]["email"] == "lee@owner.example"


@pytest.mark.integration
def test_unknown_participant_is_reported_not_created(ctx, entity_store):
    outcome = handle_webhook(_payload(PARTICIPANT_FORM, "wh-2", _participant_request()), ctx)

    assert outcome.status == "no_entity_match"
    assert not outcome.success
    assert outcome.error_code == "NO_ENTITY_MATCH"
    assert outcome.error == "no existing entity"
    assert outcome.extracted["fields"]["name"] == "Jessica Teasdale"
    assert outcome.extracted["fields"]["housing_preferences"] == "Preferred Location: Geelong"
    assert entity_store.all("participant") == []


@pytest.mark.integration
def test_known_participant_gets_files_but_no_field_changes(ctx, entity_store, blob_store):
    entity_id = entity_store.insert(
        "participant",
        {"name": "Jessica Teasdale", "ndis_number": "431187858", "email": "jess@old.example"},
    )
    request = {
        **_participant_request(),
        "q5_email": "someone.else@new.example",
        "q9_uploadPlan": ["https://files.example/uploads/ndis_plan.pdf"],
    }

    outcome = handle_webhook(_payload(PARTICIPANT_FORM, "wh-3", request), ctx)
    row = entity_store.get("participant", entity_id)

    assert outcome.success
    assert outcome.action == "matched"
    assert outcome.entity_id == entity_id
    assert outcome.files_uploaded == 1
    assert row["email"] == "jess@old.example"
    assert "housing_preferences" not in row
    assert row["version"] == 1
    assert list(blob_store.list_paths())[0].startswith(f"participant/{entity_id}/ndis_plan/")


@pytest.mark.integration
def test_envelope_keys_are_not_treated_as_attachments(ctx, entity_store, downloader):
    entity_store.insert("participant", {"name": "Jessica Teasdale", "ndis_number": "431187858"})
    request = {
        "slug": "submit/251716128939869",
        "uploadServerUrl": "https://upload.forms.example/upload",
        "temp_upload": {},
        "q4_ndisNumber": "431187858",
        "q6_profile": "https://example.org/about-me",
    }

    outcome = handle_webhook(_payload(PARTICIPANT_FORM, "wh-7", request), ctx)

    assert outcome.action == "matched"
    assert outcome.files_uploaded == 0
    assert downloader.calls == []


@pytest.mark.integration
def test_landlord_without_email_is_no_entity_match(ctx):
    payload = _payload(LANDLORD_FORM, "wh-4", {"q3_landlordDirectorName": {"first": "Lee", "last": "Owner"}})

    outcome = handle_webhook(payload, ctx)

    assert outcome.status == "no_entity_match"
    assert outcome.action == "skipped"


@pytest.mark.integration
def test_processing_failure_becomes_error_outcome(ctx, monkeypatch):
    def broken(*_args, **_kwargs):
        raise StorageError("store down")

    monkeypatch.setattr(ctx.resolver, "resolve", broken)

    outcome = handle_webhook(_payload(PARTICIPANT_FORM, "wh-5", _participant_request()), ctx)

    assert outcome.status == "error"
    assert outcome.error_code == "STORAGE_ERROR"
    assert outcome.to_dict()["error"] == "store down"


@pytest.mark.integration
def test_missing_ids_raise_payload_error(ctx):
    with pytest.raises(WebhookPayloadError):
        handle_webhook({"rawRequest": json.dumps(_participant_request())}, ctx)


def test_ids_may_sit_inside_raw_request():
    raw = {"formID": PARTICIPANT_FORM, "submissionID": "wh-6", **_participant_request()}
    submission = parse_webhook_payload({"rawRequest": raw})

    assert submission.form_id == PARTICIPANT_FORM
    assert submission.submission_id == "wh-6"
    assert [entry.key for entry in submission.answers] == ["q3_participantName", "q4_ndisNumber", "q7_preferredLocation"]


def test_invalid_raw_request_json_is_rejected():
    with pytest.raises(WebhookPayloadError):
        parse_webhook_payload({"formID": "1", "submissionID": "2", "rawRequest": "{not json"})
