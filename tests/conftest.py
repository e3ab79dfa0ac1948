# Shared pytest fixtures
from __future__ import annotations

import copy
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from resident_import.logging.init import reset_logging

STORED_COLUMNS = ("id", "user_id", "name", "empl_id", "email", "room")


class FakeResidentCursor:
    """In-memory stand-in for a psycopg2 cursor over the residents table.

    Understands BEGIN/COMMIT/ROLLBACK, the owner SELECT issued by
    fetch_residents, and (through fake_execute_values) the upsert statement.
    """

    def __init__(self) -> None:
        self.store: dict[tuple[str, str], dict[str, Any]] = {}
        self.statements: list[str] = []
        self.description: list[tuple[str]] | None = None
        self.fail_on_upsert: Exception | None = None
        self.fail_on: dict[str, Exception] = {}
        self._snapshot: dict[tuple[str, str], dict[str, Any]] | None = None
        self._next_id = 1
        self._result: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append(sql)
        keyword = sql.strip().split()[0].upper()
        if keyword in self.fail_on:
            raise self.fail_on[keyword]
        if keyword == "BEGIN":
            self._snapshot = copy.deepcopy(self.store)
        elif keyword == "COMMIT":
            self._snapshot = None
        elif keyword == "ROLLBACK":
            if self._snapshot is not None:
                self.store = self._snapshot
            self._snapshot = None
        elif keyword == "SELECT":
            (owner,) = params
            self._result = [
                (r["user_id"], r["name"], r["empl_id"], r["email"], r["room"])
                for r in self.store.values()
                if r["user_id"] == owner
            ]

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._result)

    def upsert(self, sql: str, rows: list[tuple[Any, ...]]) -> list[tuple[Any, ...]]:
        self.statements.append(sql)
        if self.fail_on_upsert is not None:
            raise self.fail_on_upsert
        keys = [(r[0], r[2]) for r in rows]
        if len(set(keys)) != len(keys):
            raise RuntimeError(
                "ON CONFLICT DO UPDATE command cannot affect row a second time"
            )
        returned = []
        for user_id, name, empl_id, email, room in rows:
            existing = self.store.get((user_id, empl_id))
            rid = existing["id"] if existing else self._next_id
            if existing is None:
                self._next_id += 1
            record = {
                "id": rid,
                "user_id": user_id,
                "name": name,
                "empl_id": empl_id,
                "email": email,
                "room": room,
            }
            self.store[(user_id, empl_id)] = record
            returned.append(tuple(record[c] for c in STORED_COLUMNS))
        self.description = [(c,) for c in STORED_COLUMNS]
        return returned


def fake_execute_values(cursor, sql, rows, template=None, page_size=100, fetch=False):  # noqa: D401
    returned = cursor.upsert(sql, list(rows))
    return returned if fetch else None


@pytest.fixture()
def fake_cursor(monkeypatch) -> FakeResidentCursor:
    import resident_import.db.upsert as up

    monkeypatch.setattr(up, "execute_values", fake_execute_values)
    return FakeResidentCursor()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """table: residents
skip_detail_limit: 10
room_keywords: [room, space, residence, dorm]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(text: str, name: str = "roster.csv") -> Path:
        f = temp_workdir / "data" / name
        f.write_text(text, encoding="utf-8")
        return f
    return _write


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def example_csv() -> str:
    return (
        "First Name,Last Name,ID,Room\n"
        "Jane,Doe,1001234567,tkra-0101-a1\n"
        ",Smith,1009876543,TKRB-0202\n"
    )


@pytest.fixture()
def patched_db(monkeypatch, fake_cursor) -> FakeResidentCursor:
    """Route the CLI's database connection to the in-memory residents table."""
    import resident_import.cli.app as app

    @contextmanager
    def _conn(cfg):
        yield fake_cursor

    monkeypatch.setattr(app, "_db_connection", _conn)
    return fake_cursor
