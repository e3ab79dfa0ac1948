from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace

"""Column alias table for resident CSV headers.

Uploaded rosters come from different spreadsheet exports, so the same logical
column shows up under several spellings ("First Name", "firstname", ...).
ColumnAliasSet is the immutable lookup table the alias resolver consumes; the
default set is versioned so an outcome can report which table was used.
"""

__all__ = [
    "ColumnAliasSet",
    "DEFAULT_ALIASES",
    "DEFAULT_ROOM_KEYWORDS",
    "LOGICAL_FIELDS",
]

# Logical field name (as reported in column mappings) -> dataclass attribute
LOGICAL_FIELDS: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "fullName": "full_name",
    "id": "id",
    "email": "email",
    "room": "room",
}

# Substrings that mark a header as a room candidate when no room alias matches
DEFAULT_ROOM_KEYWORDS: tuple[str, ...] = ("room", "space", "residence", "dorm")


@dataclass(frozen=True)
class ColumnAliasSet:
    """Accepted header spellings per logical field, most specific first.

    Matching is case-insensitive, so one spelling covers every casing of it.
    """
    first_name: tuple[str, ...]
    last_name: tuple[str, ...]
    full_name: tuple[str, ...]
    id: tuple[str, ...]
    email: tuple[str, ...]
    room: tuple[str, ...]
    version: str = "1"

    def for_field(self, field: str) -> tuple[str, ...]:
        """Return the spellings for a logical field name (e.g. ``firstName``)."""
        try:
            attr = LOGICAL_FIELDS[field]
        except KeyError:
            raise KeyError(f"unknown logical field: {field}") from None
        return getattr(self, attr)

    def items(self) -> Iterator[tuple[str, tuple[str, ...]]]:
        for field, attr in LOGICAL_FIELDS.items():
            yield field, getattr(self, attr)

    def with_overrides(
        self, overrides: Mapping[str, Iterable[str]], version: str | None = None
    ) -> ColumnAliasSet:
        """Return a copy where each overridden field uses the given spellings.

        Fields absent from ``overrides`` keep their current spellings. The
        version defaults to ``<current>+custom`` so reports show the set was
        altered.
        """
        changes: dict[str, object] = {}
        for field, spellings in overrides.items():
            if field not in LOGICAL_FIELDS:
                raise KeyError(f"unknown logical field: {field}")
            values = tuple(s for s in spellings if s)
            if not values:
                raise ValueError(f"alias list for '{field}' must not be empty")
            changes[LOGICAL_FIELDS[field]] = values
        changes["version"] = version or f"{self.version}+custom"
        return replace(self, **changes)


DEFAULT_ALIASES = ColumnAliasSet(
    first_name=("First Name", "firstname"),
    last_name=("Last Name", "lastname"),
    full_name=("Name",),
    id=("ID", "Empl ID", "ASU ID", "Student ID", "emplId", "empl_id"),
    email=("Email", "Email Address"),
    room=(
        "RoomSpaceDescription",
        "Room Space Description",
        "RoomSpace",
        "Room Space",
        "Room Number",
        "Room",
    ),
    version="2024.1",
)
