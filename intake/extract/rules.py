"""Building blocks for label-driven field extraction rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from intake.forms.answers import AnswerEntry, value_text

Predicate = Callable[[AnswerEntry], bool]
Coercion = Callable[[AnswerEntry], Any]

_AMOUNT_RE = re.compile(r"[^0-9.]")
_INT_RE = re.compile(r"\d+")
_LIST_SPLIT_RE = re.compile(r"[,;]")
_TRUTHY = {"yes", "true", "1", "y"}
PROPERTY_TYPE_TAGS = ("sda", "ndis", "residential", "commercial")


# Predicates

def label_has(*words: str) -> Predicate:
    lowered = tuple(w.lower() for w in words)

    def _predicate(entry: AnswerEntry) -> bool:
        label = entry.label_lower
        return all(word in label for word in lowered)

    return _predicate


def label_word(word: str) -> Predicate:
    pattern = re.compile(rf"\b{re.escape(word.lower())}\b")
    return lambda entry: bool(pattern.search(entry.label_lower))


def label_is(*labels: str) -> Predicate:
    lowered = {label.lower() for label in labels}
    return lambda entry: entry.label_lower.strip() in lowered


def name_is(*names: str) -> Predicate:
    lowered = {name.lower() for name in names}
    return lambda entry: entry.name_lower in lowered


def name_has(*words: str) -> Predicate:
    lowered = tuple(w.lower() for w in words)
    return lambda entry: all(word in entry.name_lower for word in lowered)


def any_of(*predicates: Predicate) -> Predicate:
    return lambda entry: any(predicate(entry) for predicate in predicates)


def all_of(*predicates: Predicate) -> Predicate:
    return lambda entry: all(predicate(entry) for predicate in predicates)


def label_lacks(*words: str) -> Predicate:
    lowered = tuple(w.lower() for w in words)
    return lambda entry: not any(word in entry.label_lower for word in lowered)


# Coercions

def as_text(entry: AnswerEntry) -> str:
    return value_text(entry.value)


def as_lower(entry: AnswerEntry) -> str:
    return as_text(entry).lower()


def as_flag(entry: AnswerEntry) -> bool:
    return as_lower(entry) in _TRUTHY


def as_amount(entry: AnswerEntry) -> float | None:
    cleaned = _AMOUNT_RE.sub("", as_text(entry))
    try:
        amount = float(cleaned)
    except ValueError:
        return None
    return amount if amount > 0 else None


def as_int(entry: AnswerEntry) -> int | None:
    match = _INT_RE.search(as_text(entry))
    if match is None:
        return None
    return int(match.group(0))


def as_property_types(entry: AnswerEntry) -> list[str]:
    text = as_lower(entry)
    return [tag for tag in PROPERTY_TYPE_TAGS if tag in text]


def as_list(entry: AnswerEntry) -> list[str]:
    return [part.strip() for part in _LIST_SPLIT_RE.split(as_text(entry)) if part.strip()]


def as_risk_level(entry: AnswerEntry) -> str | None:
    text = as_lower(entry)
    if not text:
        return None
    if "low" in text:
        return "low"
    if "high" in text:
        return "high"
    return "medium"


def as_labelled(entry: AnswerEntry) -> str:
    text = as_text(entry)
    if not text:
        return ""
    return f"{entry.label.strip()}: {text}"


@dataclass(frozen=True)
class Rule:
    """Assigns the coerced value of an entry whose label satisfies ``predicate``."""

    target: str
    predicate: Predicate
    coerce: Coercion = as_text
    accumulate: bool = False
