"""Generic rule-driven field extraction over decoded answer bags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from intake.common.constants import INVESTOR, LANDLORD, PARTICIPANT
from intake.common.models import BankDetails, Extraction, InvestorRecord, LandlordRecord, ParticipantRecord
from intake.extract.rules import Rule
from intake.extract.tables import INVESTOR_RULES, LANDLORD_RULES, PARTICIPANT_RULES
from intake.forms.answers import AnswerBag, FileListValue


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def scan(answers: AnswerBag, rules: tuple[Rule, ...]) -> dict[str, Any]:
    """Apply ``rules`` to every entry; the first matching rule consumes the entry.

    Single-valued targets keep the first non-empty value seen. Accumulating
    targets collect values from every consumed entry, de-duplicated in order.
    """
    fields: dict[str, Any] = {}
    for entry in answers:
        if isinstance(entry.value, FileListValue):
            continue
        if not entry.label and not entry.name:
            continue
        for rule in rules:
            if not rule.predicate(entry):
                continue
            value = rule.coerce(entry)
            if rule.accumulate:
                bucket = fields.setdefault(rule.target, [])
                items = value if isinstance(value, list) else [value]
                for item in items:
                    if not _is_blank(item) and item not in bucket:
                        bucket.append(item)
            elif not _is_blank(value) and rule.target not in fields:
                fields[rule.target] = value
            break
    return fields


def _build_participant(fields: dict[str, Any]) -> ParticipantRecord:
    return ParticipantRecord(**fields)


def _build_landlord(fields: dict[str, Any]) -> LandlordRecord:
    bank = BankDetails(
        bank_name=fields.pop("bank_name", None),
        bsb=fields.pop("bank_bsb", None),
        account_number=fields.pop("bank_account_number", None),
    )
    return LandlordRecord(bank_details=bank, **fields)


def _build_investor(fields: dict[str, Any]) -> InvestorRecord:
    if fields.get("available_capital") is None:
        fields.pop("available_capital", None)
    return InvestorRecord(**fields)


@dataclass(frozen=True)
class FieldExtractor:
    entity_type: str
    rules: tuple[Rule, ...]
    build: Callable[[dict[str, Any]], Any]

    def extract(self, answers: AnswerBag) -> Extraction:
        return Extraction(entity_type=self.entity_type, record=self.build(scan(answers, self.rules)))


EXTRACTORS = {
    PARTICIPANT: FieldExtractor(PARTICIPANT, PARTICIPANT_RULES, _build_participant),
    LANDLORD: FieldExtractor(LANDLORD, LANDLORD_RULES, _build_landlord),
    INVESTOR: FieldExtractor(INVESTOR, INVESTOR_RULES, _build_investor),
}


def extract(entity_type: str, answers: AnswerBag) -> Extraction:
    """Extract a structured record. Property, inquiry and unknown forms are read as participant forms."""
    extractor = EXTRACTORS.get(entity_type, EXTRACTORS[PARTICIPANT])
    return extractor.extract(answers)
