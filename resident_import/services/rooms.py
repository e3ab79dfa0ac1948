from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

"""Room code ordering.

Campus room codes look like TKRA-0123-A1: building letters, floor/room digits
and an optional unit. Listings sort by building, then numerically by floor,
then by unit. Codes that do not follow the pattern sort by their first four
characters after every parsed code of that building; rooms left blank sort last.
"""

__all__ = [
    "RoomCode",
    "parse_room",
    "room_sort_key",
    "sort_by_room",
]

_ROOM_RE = re.compile(r"^([A-Z]+)-?(\d+)-?([A-Z]\d*)?$")

_LAST_BUILDING = "\uffff"
_LAST_FLOOR = 999
_LAST_UNIT = "999"


@dataclass(frozen=True)
class RoomCode:
    building: str
    floor: int
    unit: str
    original: str


def parse_room(room: str | None) -> RoomCode:
    if not room or not room.strip():
        return RoomCode(_LAST_BUILDING, _LAST_FLOOR, _LAST_UNIT, room or "")
    upper = room.strip().upper()
    m = _ROOM_RE.match(upper)
    if m:
        building, floor, unit = m.groups()
        return RoomCode(building, int(floor), unit or _LAST_UNIT, upper)
    return RoomCode(upper[:4], _LAST_FLOOR, _LAST_UNIT, upper)


def room_sort_key(room: str | None) -> tuple[str, int, str]:
    code = parse_room(room)
    return (code.building, code.floor, code.unit)


def sort_by_room(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Stable sort of resident dicts on their ``room`` value."""
    return sorted(records, key=lambda r: room_sort_key(r.get("room")))
