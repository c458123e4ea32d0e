"""Local-disk stores: JSON tables for entities, a directory tree for blobs."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from intake.common.errors import StorageError
from intake.common.fs import ensure_dir, read_json, write_json, write_new_bytes
from intake.store.memory import MemoryEntityStore


class JsonEntityStore(MemoryEntityStore):
    """Entity tables held in memory and flushed to ``{root}/{entity_type}.json`` on every write."""

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = root
        ensure_dir(root)
        for path in sorted(root.glob("*.json")):
            payload = read_json(path)
            self.tables[path.stem] = {row["id"]: row for row in payload.get("rows", [])}

    def _after_write(self, entity_type: str) -> None:
        rows = sorted(self.tables.get(entity_type, {}).values(), key=lambda row: row["id"])
        try:
            write_json(self.root / f"{entity_type}.json", {"entity_type": entity_type, "rows": rows})
        except OSError as exc:
            raise StorageError(f"Failed to persist {entity_type} table: {exc}") from exc


class LocalBlobStore:
    def __init__(self, root: Path, bucket: str = "documents") -> None:
        self.bucket = bucket
        self.root = root / bucket
        ensure_dir(self.root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Blob path escapes bucket: {path}")
        return target

    def put(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)
        try:
            write_new_bytes(target, data)
        except FileExistsError as exc:
            raise StorageError(f"Blob already exists: {self.bucket}/{path}") from exc
        except OSError as exc:
            raise StorageError(f"Blob write failed for {self.bucket}/{path}: {exc}") from exc

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def list_paths(self) -> Iterator[str]:
        for target in sorted(self.root.rglob("*")):
            if target.is_file():
                yield target.relative_to(self.root).as_posix()

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target.exists():
            target.unlink()
