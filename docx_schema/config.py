from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterator

PROJECT_ROOT = Path(__file__).resolve().parents[1]
OUTPUT_DIR = PROJECT_ROOT / "output"
LOG_DIR = PROJECT_ROOT / "logs"

OUTPUT_FILE_NAMES = {
    "schema": "schema.json",
    "headings": "headings.json",
}

LOG_FILE_PREFIX = "docx_schema"
LOG_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
LOG_RETENTION_DAYS = 5

MAIN_DOCUMENT_PART = "word/document.xml"


def ensure_base_dirs() -> None:
    for directory in (OUTPUT_DIR, LOG_DIR):
        directory.mkdir(parents=True, exist_ok=True)


def default_output_path(pipeline: str) -> Path:
    """JSON export target used when no output path is given."""
    try:
        name = OUTPUT_FILE_NAMES[pipeline]
    except KeyError as exc:
        raise ValueError(f"unknown pipeline: {pipeline!r}") from exc
    return OUTPUT_DIR / name


def build_log_path(ts: datetime | None = None, pipeline: str | None = None) -> Path:
    stamp = (ts or datetime.now()).strftime(LOG_TIMESTAMP_FORMAT)
    parts = [LOG_FILE_PREFIX]
    if pipeline:
        parts.append(pipeline)
    parts.append(stamp)
    return LOG_DIR / ("_".join(parts) + ".log")


def iter_log_files() -> Iterator[Path]:
    if not LOG_DIR.is_dir():
        return iter(())
    return LOG_DIR.glob(f"{LOG_FILE_PREFIX}_*.log")


def cleanup_logs(retention_days: int = LOG_RETENTION_DAYS, now: datetime | None = None) -> int:
    """Delete run logs older than ``retention_days``; returns how many went."""
    if retention_days <= 0:
        return 0
    cutoff = (now or datetime.now()).timestamp() - retention_days * 86400
    removed = 0
    for path in list(iter_log_files()):
        try:
            if path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
        except OSError:
            continue
        removed += 1
    return removed
