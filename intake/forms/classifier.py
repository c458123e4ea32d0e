"""Form classification: form identifier and answer content to entity type."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from intake.common.constants import ENTITY_TYPES, PARTICIPANT
from intake.forms.answers import AnswerBag

SERVICE_AGREEMENT_KEYWORDS = ("service agreement",)


@dataclass(frozen=True)
class FormClassifier:
    registry: Mapping[str, str]
    keywords: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    default: str = PARTICIPANT

    def classify(self, form_id: str, answers: AnswerBag) -> str:
        entity_type = self.registry.get(str(form_id))
        if entity_type is not None:
            return entity_type

        text = answers.searchable_text()
        for candidate, words in self.keywords.items():
            if any(word in text for word in words):
                return candidate
        return self.default


def document_hint(answers: AnswerBag) -> str | None:
    """Category hint for uploads on submissions that read as service agreements."""
    text = answers.searchable_text()
    if any(word in text for word in SERVICE_AGREEMENT_KEYWORDS):
        return "contract"
    return None


def build_classifier(registry: Mapping[str, str], keywords: Mapping[str, list[str]]) -> FormClassifier:
    for entity_type in set(registry.values()) | set(keywords):
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type: {entity_type}")
    return FormClassifier(
        registry=dict(registry),
        keywords={entity_type: tuple(w.lower() for w in words) for entity_type, words in keywords.items()},
    )
