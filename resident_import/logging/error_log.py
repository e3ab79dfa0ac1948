from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run error log.

Skipped rows and terminal failures of an import are collected as ErrorRecords
and written as JSON Lines to ``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC stamp
taken when the run's file name is first needed). A run without errors leaves
no file behind.
"""

__all__ = [
    "LOGS_DIR",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one import run; not shared between runs."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._dir = logs_dir or LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def file_path(self) -> Path:
        if self._path is None:
            self._path = self._dir / f"errors-{datetime.now(UTC):{TIMESTAMP_FMT}}.log"
        return self._path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def flush(self) -> Path | None:
        """Append pending records to the run's file.

        Returns:
            The file written to, or None when nothing was pending
        """
        if not self._pending:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = "".join(f"{rec.to_json_line()}\n" for rec in self._pending)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(payload)
        self._pending = []
        return path
