from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""NormalizedResident model.

A NormalizedResident is the canonical unit handed to the persistence layer.
It can only be built when name and external ID are both present; rows that
fail this gate become SkipRecords instead.
"""

__all__ = [
    "NormalizedResident",
    "RECORD_COLUMNS",
]

# Storage column order used for the upsert
RECORD_COLUMNS: tuple[str, ...] = ("user_id", "name", "empl_id", "email", "room")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclass(frozen=True)
class NormalizedResident:
    """One resident row ready for upsert, keyed on (owner_id, external_id)."""
    owner_id: str  # Identity of the importing user
    name: str
    external_id: str  # Institutional ID (empl_id column)
    email: str | None = None
    room: str | None = None  # Upper-cased room code

    def __post_init__(self) -> None:
        missing = [
            label
            for label, value in (
                ("owner_id", self.owner_id),
                ("name", self.name),
                ("external_id", self.external_id),
            )
            if _is_blank(value)
        ]
        if missing:
            raise ValueError(f"NormalizedResident requires non-blank {', '.join(missing)}")

    def to_record(self) -> dict[str, Any]:
        """Map to the residents table row shape."""
        return {
            "user_id": self.owner_id,
            "name": self.name,
            "empl_id": self.external_id,
            "email": self.email,
            "room": self.room,
        }

    def to_row(self) -> tuple[Any, ...]:
        record = self.to_record()
        return tuple(record[c] for c in RECORD_COLUMNS)
