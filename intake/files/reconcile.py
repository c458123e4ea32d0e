"""Sweep for blobs that were uploaded but never indexed."""

from __future__ import annotations

from intake.common.constants import FILE_ASSET
from intake.store.base import BlobStore, EntityStore


def find_orphaned_blobs(blob_store: BlobStore, entity_store: EntityStore) -> list[str]:
    indexed = {
        row.get("storage_path")
        for row in entity_store.all(FILE_ASSET)
        if row.get("storage_bucket", blob_store.bucket) == blob_store.bucket
    }
    return [path for path in blob_store.list_paths() if path not in indexed]


def sweep_orphaned_blobs(blob_store: BlobStore, entity_store: EntityStore, *, delete: bool = False) -> dict:
    orphans = find_orphaned_blobs(blob_store, entity_store)
    if delete:
        for path in orphans:
            blob_store.delete(path)
    return {"bucket": blob_store.bucket, "orphaned": orphans, "deleted": len(orphans) if delete else 0}
