from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..models.aliases import DEFAULT_ALIASES, DEFAULT_ROOM_KEYWORDS, ColumnAliasSet
from ..models.resident import NormalizedResident
from ..models.skip_record import SkipRecord
from .aliases import lookup_value, scan_room_fallback

"""Row normalizer & validator.

Turns one RawRow into either a NormalizedResident or a SkipRecord. Pure: no
logging, no I/O.
"""

__all__ = [
    "FIRST_DATA_ROW",
    "normalize_row",
    "row_number_for",
]

# Header occupies spreadsheet row 1
FIRST_DATA_ROW = 2


def row_number_for(index: int) -> int:
    """Spreadsheet row number for the 0-based data row index."""
    return index + FIRST_DATA_ROW


def _resolve_name(row: Mapping[str, str | None], aliases: ColumnAliasSet) -> str | None:
    first = lookup_value(row, aliases.first_name)
    last = lookup_value(row, aliases.last_name)
    if first and last:
        return f"{first} {last}"
    return lookup_value(row, aliases.full_name)


def _resolve_room(
    row: Mapping[str, str | None], aliases: ColumnAliasSet, room_keywords: Sequence[str]
) -> str | None:
    room = lookup_value(row, aliases.room)
    if room is None:
        room = scan_room_fallback(row, room_keywords)
    return room.upper() if room else None


def normalize_row(
    row: Mapping[str, str | None],
    row_number: int,
    owner_id: str,
    aliases: ColumnAliasSet = DEFAULT_ALIASES,
    room_keywords: Sequence[str] = DEFAULT_ROOM_KEYWORDS,
) -> NormalizedResident | SkipRecord:
    """Normalize a single RawRow.

    Args:
        row: Header -> cell text mapping for one data row
        row_number: Spreadsheet row number (first data row is 2)
        owner_id: Identity that will own the resident
        aliases: Column alias table
        room_keywords: Substrings used by the per-row room fallback scan

    Returns:
        NormalizedResident when both name and ID are present, else a SkipRecord
        listing "name" and/or "ID".
    """
    name = _resolve_name(row, aliases)
    external_id = lookup_value(row, aliases.id)

    missing: list[str] = []
    if name is None:
        missing.append("name")
    if external_id is None:
        missing.append("ID")
    if missing:
        return SkipRecord(row_number=row_number, reason=missing, original_row=dict(row))

    return NormalizedResident(
        owner_id=owner_id,
        name=name,
        external_id=external_id,
        email=lookup_value(row, aliases.email),
        room=_resolve_room(row, aliases, room_keywords),
    )
