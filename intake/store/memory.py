"""In-process entity and blob stores with version-checked updates."""

from __future__ import annotations

import copy
import threading
from typing import Any, Iterator

from intake.common.errors import StorageError, VersionConflictError
from intake.common.ids import generate_record_id
from intake.common.time_utils import utc_timestamp_iso
from intake.store.base import VERSION_FIELD, MatchKey



class MemoryEntityStore:
    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.lock = threading.RLock()

    def _table(self, entity_type: str) -> dict[str, dict[str, Any]]:
        return self.tables.setdefault(entity_type, {})

    def find(self, entity_type: str, match_key: MatchKey) -> dict[str, Any] | None:
        if not match_key:
            return None
        with self.lock:
            for row in self._table(entity_type).values():
                if all(criterion.matches(row) for criterion in match_key):
                    return copy.deepcopy(row)
        return None

    def get(self, entity_type: str, entity_id: str) -> dict[str, Any] | None:
        with self.lock:
            row = self._table(entity_type).get(entity_id)
            return copy.deepcopy(row) if row is not None else None

    def insert(self, entity_type: str, record: dict[str, Any]) -> str:
        with self.lock:
            entity_id = record.get("id") or generate_record_id()
            table = self._table(entity_type)
            if entity_id in table:
                raise StorageError(f"Duplicate {entity_type} id: {entity_id}")
            now = utc_timestamp_iso()
            row = {**copy.deepcopy(record), "id": entity_id, VERSION_FIELD: 1}
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
            table[entity_id] = row
            try:
                self._after_write(entity_type)
            except StorageError:
                del table[entity_id]
                raise
            return entity_id

    def update(
        self,
        entity_type: str,
        entity_id: str,
        partial: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> None:
        with self.lock:
            table = self._table(entity_type)
            row = table.get(entity_id)
            if row is None:
                raise StorageError(f"Unknown {entity_type} id: {entity_id}")
            if expected_version is not None and row.get(VERSION_FIELD) != expected_version:
                raise VersionConflictError(
                    f"{entity_type} {entity_id} is at version {row.get(VERSION_FIELD)}, expected {expected_version}"
                )
            changes = {k: copy.deepcopy(v) for k, v in partial.items() if k not in ("id", VERSION_FIELD)}
            updated = {**row, **changes}
            updated[VERSION_FIELD] = int(row.get(VERSION_FIELD) or 0) + 1
            updated["updated_at"] = utc_timestamp_iso()
            table[entity_id] = updated
            try:
                self._after_write(entity_type)
            except StorageError:
                # Writes that fail to persist leave the table as it was.
                table[entity_id] = row
                raise

    def all(self, entity_type: str) -> list[dict[str, Any]]:
        with self.lock:
            return [copy.deepcopy(row) for row in self._table(entity_type).values()]

    def _after_write(self, entity_type: str) -> None:
        pass


class MemoryBlobStore:
    def __init__(self, bucket: str = "documents") -> None:
        self.bucket = bucket
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.lock = threading.Lock()

    def put(self, path: str, data: bytes, content_type: str) -> None:
        with self.lock:
            if path in self.blobs:
                raise StorageError(f"Blob already exists: {self.bucket}/{path}")
            self.blobs[path] = (bytes(data), content_type)

    def exists(self, path: str) -> bool:
        with self.lock:
            return path in self.blobs

    def list_paths(self) -> Iterator[str]:
        with self.lock:
            paths = sorted(self.blobs)
        return iter(paths)

    def delete(self, path: str) -> None:
        with self.lock:
            self.blobs.pop(path, None)
