"""UTC-focused helpers for run metadata and storage paths."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000
