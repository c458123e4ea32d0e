"""Data models used across the intake pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class BankDetails:
    bank_name: str | None = None
    bsb: str | None = None
    account_number: str | None = None


@dataclass
class ParticipantRecord:
    name: str | None = None
    email: str | None = None
    ndis_number: str | None = None
    age: int | None = None
    date_of_birth: str | None = None
    disability_category: str | None = None
    support_level: str | None = None
    current_housing_type: str | None = None
    housing_preferences: list[str] = field(default_factory=list)
    support_coordinator_name: str | None = None
    support_coordinator_email: str | None = None

    def housing_preferences_text(self) -> str | None:
        if not self.housing_preferences:
            return None
        return "\n".join(self.housing_preferences)

    def to_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "ndis_number": self.ndis_number,
            "age": self.age,
            "date_of_birth": self.date_of_birth,
            "disability_category": self.disability_category,
            "support_level": self.support_level,
            "current_housing_type": self.current_housing_type,
            "housing_preferences": self.housing_preferences_text(),
            "support_coordinator_name": self.support_coordinator_name,
            "support_coordinator_email": self.support_coordinator_email,
        }


@dataclass
class LandlordRecord:
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    business_name: str | None = None
    abn: str | None = None
    address: str | None = None
    ndis_registered: bool = False
    registration_number: str | None = None
    registration_expiry: str | None = None
    bank_details: BankDetails = field(default_factory=BankDetails)

    def to_fields(self) -> dict[str, Any]:
        return {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "business_name": self.business_name,
            "abn": self.abn,
            "address": self.address,
            "ndis_registered": self.ndis_registered,
            "registration_number": self.registration_number,
            "registration_expiry": self.registration_expiry,
            "bank_name": self.bank_details.bank_name,
            "bank_bsb": self.bank_details.bsb,
            "bank_account_number": self.bank_details.account_number,
        }


@dataclass
class InvestorRecord:
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    available_capital: float = 0.0
    preferred_property_types: list[str] = field(default_factory=list)
    preferred_locations: list[str] = field(default_factory=list)
    risk_tolerance: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "available_capital": self.available_capital,
            "preferred_property_types": list(self.preferred_property_types),
            "preferred_locations": list(self.preferred_locations),
            "risk_tolerance": self.risk_tolerance,
        }


@dataclass(frozen=True)
class Extraction:
    """An extracted record tagged with the entity type that routes it to a resolver."""

    entity_type: str
    record: ParticipantRecord | LandlordRecord | InvestorRecord

    def to_dict(self) -> dict[str, Any]:
        return {"entity_type": self.entity_type, "fields": self.record.to_fields()}


@dataclass(frozen=True)
class Resolution:
    action: str
    entity_type: str
    entity_id: str | None = None
    reason: str | None = None
    matched_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FileAsset:
    source_url: str
    filename: str
    byte_size: int
    mime_type: str
    category: str
    storage_path: str
    storage_bucket: str
    entity_type: str
    entity_id: str
    source_submission_id: str
    source_form_id: str
    categorization_confidence: int
    processed: bool
    source: str
    processed_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FileOutcome:
    uploaded: list[FileAsset] = field(default_factory=list)
    failures: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_uploaded": len(self.uploaded),
            "files": [asset.to_dict() for asset in self.uploaded],
            "file_failures": list(self.failures),
        }


@dataclass
class ProcessingResult:
    """Counters and per-item outcomes for one run. Owned by the run that created it."""

    run_id: str
    action: str
    total_processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    files_uploaded: int = 0
    cancelled: bool = False
    outcomes: list[dict[str, Any]] = field(default_factory=list)

    def record_resolution(self, resolution: Resolution, *, submission_id: str, form_id: str, name: str | None) -> None:
        if resolution.action == "created":
            self.created += 1
        elif resolution.action == "updated":
            self.updated += 1
        elif resolution.action == "skipped":
            self.skipped += 1
        self.outcomes.append(
            {
                "submission_id": submission_id,
                "form_id": form_id,
                "entity_type": resolution.entity_type,
                "entity_id": resolution.entity_id,
                "name": name,
                "action": resolution.action,
                "reason": resolution.reason,
            }
        )

    def record_error(self, *, stage: str, error: Exception, submission_id: str | None, form_id: str) -> None:
        self.errors += 1
        self.outcomes.append(
            {
                "submission_id": submission_id,
                "form_id": form_id,
                "action": "error",
                "stage": stage,
                "error_code": getattr(error, "error_code", "UNEXPECTED_ERROR"),
                "error": str(error),
            }
        )

    def record_files(self, outcome: FileOutcome) -> None:
        self.files_uploaded += len(outcome.uploaded)
        self.errors += len(outcome.failures)

    @property
    def message(self) -> str:
        return (
            f"{self.action} completed: {self.created} created, {self.updated} updated, "
            f"{self.skipped} skipped, {self.errors} errors from {self.total_processed} submissions"
        )

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["message"] = self.message
        return payload
