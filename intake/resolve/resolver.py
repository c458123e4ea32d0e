"""Match-or-create upserts with merge-not-replace updates."""

from __future__ import annotations

import logging
from typing import Any

from intake.common.constants import INVESTOR, LANDLORD, PARTICIPANT
from intake.common.errors import ValidationSkip, VersionConflictError
from intake.common.logging import get_logger, log_event
from intake.common.models import Extraction, Resolution
from intake.resolve.matching import MATCH_STRATEGIES
from intake.store.base import VERSION_FIELD, EntityStore

CREATED = "created"
UPDATED = "updated"
MATCHED = "matched"
SKIPPED = "skipped"
NO_MATCH = "no_match"

# participant: any one field suffices; landlord and investor: all are required.
REQUIRED_ANY = {PARTICIPANT: ("name", "ndis_number", "email")}
REQUIRED_ALL = {LANDLORD: ("full_name", "email"), INVESTOR: ("full_name", "email")}

CREATE_DEFAULTS: dict[str, dict[str, Any]] = {
    PARTICIPANT: {
        "support_level": "Medium",
        "housing_status": "Seeking SDA",
        "participant_status": "pending",
    },
    LANDLORD: {
        "status": "active",
        "ndis_registered": False,
    },
    INVESTOR: {
        "available_capital": 0,
        "preferred_property_types": ["sda", "ndis"],
        "preferred_locations": [],
        "risk_tolerance": "medium",
    },
}


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def merge_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """The subset of extracted fields allowed to overwrite stored values."""
    return {key: value for key, value in fields.items() if not is_empty(value)}


def display_name(extraction: Extraction) -> str | None:
    fields = extraction.record.to_fields()
    return fields.get("name") or fields.get("full_name")


def validate(extraction: Extraction) -> None:
    fields = extraction.record.to_fields()
    entity_type = extraction.entity_type
    if entity_type in REQUIRED_ANY:
        required = REQUIRED_ANY[entity_type]
        if all(is_empty(fields.get(name)) for name in required):
            raise ValidationSkip(f"{entity_type} record has none of: {', '.join(required)}")
    elif entity_type in REQUIRED_ALL:
        missing = [name for name in REQUIRED_ALL[entity_type] if is_empty(fields.get(name))]
        if missing:
            raise ValidationSkip(f"{entity_type} record missing: {', '.join(missing)}")
    else:
        raise ValidationSkip(f"No resolver for entity type {entity_type}")


class EntityResolver:
    def __init__(self, store: EntityStore, *, logger: logging.Logger | None = None, max_attempts: int = 3) -> None:
        self.store = store
        self.logger = logger or get_logger()
        self.max_attempts = max_attempts

    def match(self, extraction: Extraction) -> tuple[dict[str, Any] | None, str | None]:
        fields = extraction.record.to_fields()
        for strategy in MATCH_STRATEGIES.get(extraction.entity_type, ()):
            match_key = strategy.key_for(fields)
            if match_key is None:
                continue
            row = self.store.find(extraction.entity_type, match_key)
            if row is not None:
                return row, strategy.name
        return None, None

    def resolve(
        self,
        extraction: Extraction,
        *,
        submission_id: str,
        form_id: str,
        lookup_only: bool = False,
    ) -> Resolution:
        """Match-or-create, merging into a match. ``lookup_only`` reports a match without writing."""
        entity_type = extraction.entity_type
        try:
            validate(extraction)
        except ValidationSkip as exc:
            log_event(
                self.logger,
                f"skipped submission {submission_id}: {exc}",
                stage="resolve",
                form_id=form_id,
                submission_id=submission_id,
                entity_type=entity_type,
                event="RESOLVE_SKIP",
                status="skipped",
                action=SKIPPED,
            )
            return Resolution(action=SKIPPED, entity_type=entity_type, reason=str(exc))

        if lookup_only:
            existing, matched_by = self.match(extraction)
            if existing is None:
                return Resolution(action=NO_MATCH, entity_type=entity_type, reason="no existing entity")
            return self._done(MATCHED, entity_type, existing["id"], submission_id, form_id, matched_by=matched_by)

        fields = extraction.record.to_fields()
        for attempt in range(1, self.max_attempts + 1):
            existing, matched_by = self.match(extraction)
            if existing is None:
                entity_id = self._create(entity_type, fields, submission_id=submission_id, form_id=form_id)
                return self._done(CREATED, entity_type, entity_id, submission_id, form_id)

            try:
                self.store.update(
                    entity_type,
                    existing["id"],
                    merge_fields(fields),
                    expected_version=existing.get(VERSION_FIELD),
                )
            except VersionConflictError:
                if attempt == self.max_attempts:
                    raise
                continue
            return self._done(UPDATED, entity_type, existing["id"], submission_id, form_id, matched_by=matched_by)
        raise AssertionError("unreachable")

    def _create(self, entity_type: str, fields: dict[str, Any], *, submission_id: str, form_id: str) -> str:
        row = dict(CREATE_DEFAULTS.get(entity_type, {}))
        row.update(merge_fields(fields))
        if entity_type == PARTICIPANT:
            row.setdefault("name", "Unknown")
        row["notes"] = f"Imported from form {form_id}, submission {submission_id}"
        row["source_submission_id"] = submission_id
        row["source_form_id"] = form_id
        return self.store.insert(entity_type, row)

    def _done(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        submission_id: str,
        form_id: str,
        *,
        matched_by: str | None = None,
    ) -> Resolution:
        log_event(
            self.logger,
            f"{action} {entity_type} {entity_id}",
            stage="resolve",
            form_id=form_id,
            submission_id=submission_id,
            entity_type=entity_type,
            entity_id=entity_id,
            event="RESOLVE_DONE",
            status="ok",
            action=action,
        )
        return Resolution(action=action, entity_type=entity_type, entity_id=entity_id, matched_by=matched_by)
