"""Contracts for the entity store and blob store collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Protocol

EXACT = "exact"
IEXACT = "iexact"
ICONTAINS = "icontains"
VERSION_FIELD = "version"


@dataclass(frozen=True)
class Criterion:
    field: str
    value: Any
    mode: str = EXACT

    def matches(self, row: dict[str, Any]) -> bool:
        current = row.get(self.field)
        if current is None or self.value is None:
            return False
        if self.mode == EXACT:
            return current == self.value
        left = str(current).strip().lower()
        right = str(self.value).strip().lower()
        if self.mode == IEXACT:
            return left == right
        if self.mode == ICONTAINS:
            return bool(right) and right in left
        raise ValueError(f"Unknown match mode: {self.mode}")


MatchKey = tuple[Criterion, ...]


class EntityStore(Protocol):
    def find(self, entity_type: str, match_key: MatchKey) -> dict[str, Any] | None: ...

    def get(self, entity_type: str, entity_id: str) -> dict[str, Any] | None: ...

    def insert(self, entity_type: str, record: dict[str, Any]) -> str: ...

    def update(
        self,
        entity_type: str,
        entity_id: str,
        partial: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> None: ...

    def all(self, entity_type: str) -> list[dict[str, Any]]: ...


class BlobStore(Protocol):
    bucket: str

    def put(self, path: str, data: bytes, content_type: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def list_paths(self) -> Iterator[str]: ...

    def delete(self, path: str) -> None: ...
