from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .skip_record import SkipRecord

"""ImportOutcome model and ImportStatus enum.

ImportOutcome is built once per import call and returned to the caller (or
attached to the failure raised). It is never persisted.
"""

__all__ = [
    "ImportOutcome",
    "ImportStatus",
]


class ImportStatus(Enum):
    """Lifecycle of one import call.

    State transitions: parsing → normalizing → persisting → (completed | rejected)
    A call may also be rejected straight from normalizing when no row is valid.
    Outcomes only ever carry a terminal state; the other three are reported as
    the ``stage`` of a raised ResidentImportError.
    """
    PARSING = "parsing"
    NORMALIZING = "normalizing"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    REJECTED = "rejected"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregate result of one import call."""
    status: ImportStatus
    owner_id: str
    total_rows: int  # Data rows seen (header excluded)
    valid_rows: int
    skipped_rows: int  # Total skips, may exceed len(skipped_details)
    detected_columns: list[str]
    column_mapping: dict[str, str | None]  # Logical field -> header
    skipped_details: list[SkipRecord] = field(default_factory=list)
    persisted_count: int = 0
    persisted_records: list[dict[str, Any]] = field(default_factory=list)
    alias_version: str = ""
    elapsed_seconds: float = 0.0

    @property
    def truncated(self) -> bool:
        """True when more rows were skipped than are listed in skipped_details."""
        return self.skipped_rows > len(self.skipped_details)

    def feedback(self) -> dict[str, Any]:
        """Diagnostic subset shown to the uploader, on success and on failure."""
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "skippedRows": self.skipped_rows,
            "detectedColumns": list(self.detected_columns),
            "columnMapping": dict(self.column_mapping),
            "skippedDetails": [s.to_dict() for s in self.skipped_details],
        }

    def to_dict(self) -> dict[str, Any]:
        data = self.feedback()
        data.update(
            {
                "status": self.status.value,
                "ownerId": self.owner_id,
                "persistedCount": self.persisted_count,
                "persistedRecords": _jsonable(self.persisted_records),
                "aliasVersion": self.alias_version,
                "elapsedSeconds": self.elapsed_seconds,
            }
        )
        return _jsonable(data)
