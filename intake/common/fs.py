"""Filesystem helpers for config, JSON tables and stored blobs."""

from __future__ import annotations

import json
import os
from pathlib import Path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    """Write via a sibling temp file so readers never see a half-written table."""
    ensure_dir(path.parent)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")
    os.replace(tmp_path, path)


def read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_new_bytes(path: Path, data: bytes) -> None:
    """Create ``path`` with ``data``; raises FileExistsError rather than overwrite."""
    ensure_dir(path.parent)
    with path.open("xb") as f:
        f.write(data)
