"""Run report output."""

from __future__ import annotations

from pathlib import Path

from intake.common.fs import write_json
from intake.common.models import ProcessingResult
from intake.common.time_utils import utc_timestamp_iso


def run_status(result: ProcessingResult) -> str:
    if result.cancelled:
        return "cancelled"
    if result.errors > 0:
        return "partial"
    return "success"


def write_run_summary(data_dir: Path, result: ProcessingResult) -> Path:
    summary_path = data_dir / "out" / "reports" / f"{result.run_id}_summary.json"
    payload = {
        "run_id": result.run_id,
        "action": result.action,
        "status": run_status(result),
        "finished_at": utc_timestamp_iso(),
        "totals": {
            "total_processed": result.total_processed,
            "created": result.created,
            "updated": result.updated,
            "skipped": result.skipped,
            "errors": result.errors,
            "files_uploaded": result.files_uploaded,
        },
        "message": result.message,
        "outcomes": result.outcomes,
    }
    write_json(summary_path, payload)
    return summary_path
