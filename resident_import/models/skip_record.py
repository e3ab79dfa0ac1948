from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""SkipRecord model: one entry per uploaded row excluded from an import."""

__all__ = [
    "SkipRecord",
]


@dataclass(frozen=True)
class SkipRecord:
    """Diagnostic entry for a row that failed the name/ID gate.

    row_number is what a spreadsheet editor shows: the header is row 1, so the
    first data row is row 2.
    """
    row_number: int
    reason: list[str]  # Missing fields, subset of ["name", "ID"] in that order
    original_row: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row_number,
            "reason": list(self.reason),
            "originalRow": dict(self.original_row),
        }

    def describe(self) -> str:
        return f"row {self.row_number}: missing {', '.join(self.reason)}"
