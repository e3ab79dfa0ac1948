from __future__ import annotations

from typing import Any

from ..models.resident import RECORD_COLUMNS
from ..services.rooms import sort_by_room
from .upsert import quote_ident

"""Read-back of stored residents for one owner."""

__all__ = [
    "fetch_residents",
]


def fetch_residents(cursor: Any, table: str, owner_id: str) -> list[dict[str, Any]]:
    """Return the owner's residents as dicts, ordered by room code."""
    cols_sql = ",".join(f'"{c}"' for c in RECORD_COLUMNS)
    cursor.execute(
        f'SELECT {cols_sql} FROM {quote_ident(table)} WHERE "user_id" = %s',
        (owner_id,),
    )
    records = [dict(zip(RECORD_COLUMNS, r, strict=False)) for r in cursor.fetchall()]
    return sort_by_room(records)
