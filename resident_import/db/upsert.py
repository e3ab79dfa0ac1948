from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""DB batch upsert.

One INSERT ... ON CONFLICT (...) DO UPDATE statement built with
psycopg2.extras.execute_values. All rows go out in a single page so the
statement is atomic: the caller's transaction either holds every row or none.
Conflict resolution (last write wins on the key) is left to PostgreSQL.
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import execute_values
except ImportError:  # pragma: no cover
    execute_values = None  # type: ignore

__all__ = [
    "UpsertError",
    "UpsertMetrics",
    "UpsertResult",
    "batch_upsert",
    "build_upsert_sql",
    "quote_ident",
]


class UpsertError(Exception):
    pass


@dataclass(frozen=True)
class UpsertMetrics:
    """Timing data for a single upsert statement."""
    row_count: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class UpsertResult:
    affected_rows: int
    returned_rows: list[dict[str, Any]] | None = None


def quote_ident(name: str) -> str:
    return ".".join(f'"{part}"' for part in name.split("."))


def build_upsert_sql(
    table: str,
    columns: Sequence[str],
    conflict_columns: Sequence[str],
    returning: bool = True,
) -> str:
    """Build the execute_values statement (``VALUES %s`` placeholder included)."""
    if not conflict_columns:
        raise UpsertError("conflict_columns must not be empty")
    missing = [c for c in conflict_columns if c not in columns]
    if missing:
        raise UpsertError(f"conflict columns not in insert columns: {missing}")

    cols_sql = ",".join(f'"{c}"' for c in columns)
    conflict_sql = ",".join(f'"{c}"' for c in conflict_columns)
    update_cols = [c for c in columns if c not in conflict_columns]
    if update_cols:
        set_sql = ",".join(f'"{c}"=EXCLUDED."{c}"' for c in update_cols)
        action = f"DO UPDATE SET {set_sql}"
    else:
        action = "DO NOTHING"
    sql = (
        f"INSERT INTO {quote_ident(table)} ({cols_sql}) VALUES %s "
        f"ON CONFLICT ({conflict_sql}) {action}"
    )
    if returning:
        sql += " RETURNING *"
    return sql


def batch_upsert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_columns: Sequence[str],
    returning: bool = True,
    metrics_callback: Callable[[UpsertMetrics], None] | None = None,
) -> UpsertResult:
    """Insert-or-update ``rows`` keyed on ``conflict_columns``.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction managed by the caller)
    table: target table, optionally schema qualified
    columns: column order of each row
    rows: row values
    conflict_columns: unique key used for ON CONFLICT
    returning: fetch the stored rows back as dicts keyed by column name
    metrics_callback: receives UpsertMetrics after the statement ran (not
        called for an empty ``rows``)
    """
    if execute_values is None:
        raise UpsertError("psycopg2 not available")

    rows_list = [tuple(r) for r in rows]
    if not rows_list:
        return UpsertResult(affected_rows=0, returned_rows=[] if returning else None)

    sql = build_upsert_sql(table, columns, conflict_columns, returning=returning)

    start_time = time.time()
    try:
        fetched = execute_values(
            cursor, sql, rows_list, page_size=len(rows_list), fetch=returning
        )
    except Exception as e:
        raise UpsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                UpsertMetrics(
                    row_count=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    returned = None
    if returning:
        names = [d[0] for d in (cursor.description or [])]
        if not names:
            names = list(columns)
        returned = [dict(zip(names, r, strict=False)) for r in (fetched or [])]

    return UpsertResult(affected_rows=len(rows_list), returned_rows=returned)
