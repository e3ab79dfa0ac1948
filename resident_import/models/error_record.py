from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .skip_record import SkipRecord

"""One line of the per-run error log.

Row-level records point at the spreadsheet row of a skipped resident. Failures
that concern the whole upload (parse errors, rejected or failed transactions)
use row=-1.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Error log entry, serialized as one JSON object per line.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded CSV filename being processed
        row: Row number as a spreadsheet shows it. Use -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_skip(file: str, skip: SkipRecord) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            row=skip.row_number,
            error_type="MISSING_REQUIRED_FIELDS",
            message=f"missing {', '.join(skip.reason)}",
        )

    def to_json_line(self) -> str:
        """JSON object with exactly the five dataclass fields."""
        return json.dumps(asdict(self), ensure_ascii=False)
