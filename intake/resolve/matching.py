"""Ordered match strategies used to find an existing entity for an extracted record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from intake.common.constants import INVESTOR, LANDLORD, PARTICIPANT
from intake.store.base import EXACT, ICONTAINS, IEXACT, Criterion, MatchKey


@dataclass(frozen=True)
class MatchStrategy:
    name: str
    fields: tuple[tuple[str, str], ...]

    def key_for(self, fields: dict[str, Any]) -> MatchKey | None:
        """Criteria for this strategy, or None when the record lacks any of its fields."""
        criteria = []
        for field, mode in self.fields:
            value = fields.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            if isinstance(value, str):
                value = value.strip()
            criteria.append(Criterion(field=field, value=value, mode=mode))
        return tuple(criteria)


MATCH_STRATEGIES: dict[str, tuple[MatchStrategy, ...]] = {
    PARTICIPANT: (
        MatchStrategy("ndis_number", (("ndis_number", EXACT),)),
        MatchStrategy("email", (("email", IEXACT),)),
        MatchStrategy("name_fuzzy", (("name", ICONTAINS),)),
    ),
    LANDLORD: (
        MatchStrategy("email", (("email", IEXACT),)),
        MatchStrategy("name_abn", (("full_name", EXACT), ("abn", EXACT))),
    ),
    INVESTOR: (
        MatchStrategy("email", (("email", IEXACT),)),
    ),
}
