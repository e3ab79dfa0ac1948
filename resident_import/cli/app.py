from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..csv.reader import CsvParseError, parse_csv_text, read_upload
from ..db.residents import fetch_residents
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import ImportConfig
from ..models.import_outcome import ImportOutcome
from ..services.aliases import resolve_columns
from ..services.importer import (
    InputMissingError,
    MalformedInputError,
    ResidentImportError,
    import_csv,
)
from ..services.normalizer import normalize_row, row_number_for
from ..services.summary import render_summary_line

"""CLI entrypoint.

    python -m resident_import.cli roster.csv --owner <user id> [--dry-run] [--json]

Reads one roster CSV, imports it for the given owner and prints a SUMMARY line.
Exit codes:
- 0: import completed
- 1: fatal (config error, missing or malformed upload, database unreachable)
- 2: rejected with feedback (no valid rows, upsert failed)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_REJECTED = 2

DEFAULT_CONFIG_PATH = Path("config/import.yml")
INSPECT_SAMPLE_ROWS = 3


@contextmanager
def _db_connection(cfg: ImportConfig):  # pragma: no cover (thin wrapper; tested via integration)
    """Context manager providing a psycopg2 cursor.

    Connection settings resolve in this order:
        1. DATABASE_URL / PGDSN (whole DSN) from the environment or .env
        2. config/import.yml database.dsn
        3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each
           falling back to the config database section
    The connection runs in autocommit mode; the importer issues its own
    BEGIN/COMMIT around the upsert.
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Resident roster CSV -> PostgreSQL importer")
    p.add_argument("csv_file", help="Roster CSV (header row first)")
    p.add_argument("--owner", required=True, help="User id that will own the imported residents")
    p.add_argument("--config", default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--dry-run", action="store_true", help="Normalize and report, write nothing")
    p.add_argument("--json", action="store_true", help="Print the import outcome as JSON on stdout; logs go to stderr")
    p.add_argument("--list", action="store_true", help="List the owner's residents by room afterwards")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data", action="store_true", help="Print detected columns & first rows then exit"
    )
    return p.parse_args(argv)


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _inspect_data(text: str, owner_id: str, cfg: ImportConfig) -> int:
    try:
        table = parse_csv_text(text)
    except CsvParseError as e:
        print(f"inspect: parse_error: {e.details}")
        return EXIT_FATAL
    mapping = resolve_columns(table.headers, cfg.aliases, cfg.room_keywords)
    print(f"COLUMNS: {table.headers}")
    print(f"MAPPING: {mapping}")
    print(f"ROWS: {len(table.rows)}")
    for index, row in enumerate(table.rows[:INSPECT_SAMPLE_ROWS]):
        row_number = row_number_for(index)
        result = normalize_row(row, row_number, owner_id, cfg.aliases, cfg.room_keywords)
        print(f"  row {row_number}: {row} -> {result}")
    return EXIT_SUCCESS


def _print_residents(records: list[dict[str, Any]]) -> None:
    for r in records:
        print(f"  {r.get('room') or '-':<16} {r.get('empl_id') or '':<12} {r.get('name') or ''}")


def _report(logger: logging.Logger, outcome: ImportOutcome) -> None:
    for skip in outcome.skipped_details:
        logger.warning(f"skipped {skip.describe()}")
    if outcome.truncated:
        logger.warning(
            f"{outcome.skipped_rows - len(outcome.skipped_details)} more skipped rows not listed"
        )
    log_summary(render_summary_line(outcome))


def _run_live(
    logger: logging.Logger,
    text: str,
    args: argparse.Namespace,
    cfg: ImportConfig,
    error_log: ErrorLogBuffer,
    source_name: str,
) -> tuple[ImportOutcome, list[dict[str, Any]] | None]:
    listed: list[dict[str, Any]] | None = None
    with _db_connection(cfg) as cur:
        outcome = import_csv(
            text, args.owner, cur, config=cfg, error_log=error_log, source_name=source_name
        )
        if args.list:
            # Import is committed at this point
            try:
                listed = fetch_residents(cur, cfg.table, args.owner)
            except Exception as list_e:
                logger.error(f"list: {list_e}")
    return outcome, listed


def main(argv: list[str] | None = None) -> int:
    # Only None reads sys.argv; an explicit [] from tests must not pick up pytest's flags
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # With --json stdout carries only the JSON document
    logger = setup_logging(stream=sys.stderr if args.json else None)
    if not args.owner.strip():
        logger.error("--owner must not be blank")
        return EXIT_FATAL
    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    csv_path = Path(args.csv_file)
    if not csv_path.is_file():
        logger.error(f"{InputMissingError()}: {csv_path}")
        return EXIT_FATAL
    try:
        text = read_upload(csv_path)
    except CsvParseError as e:
        logger.error(f"{e}: {e.details}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(text, args.owner, cfg)

    dry_run = args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1"
    error_log = ErrorLogBuffer()
    mode = "dry-run" if dry_run else "live"
    logger.info(f"Importing {csv_path.name} owner={args.owner} mode={mode}")
    if args.list and dry_run:
        logger.warning("--list ignored: nothing is stored in dry-run mode")

    listed: list[dict[str, Any]] | None = None
    try:
        if dry_run:
            outcome = import_csv(
                text, args.owner, None, config=cfg, error_log=error_log, source_name=csv_path.name
            )
        else:
            outcome, listed = _run_live(logger, text, args, cfg, error_log, csv_path.name)
    except MalformedInputError as e:
        logger.error(f"{e}: {e.details}")
        if args.json:
            _print_json(e.to_dict())
        return EXIT_FATAL
    except ResidentImportError as e:
        logger.error(str(e))
        suggestion = getattr(e, "suggestion", None)
        if suggestion:
            logger.info(suggestion)
        if args.json:
            _print_json(e.to_dict())
        if e.outcome is not None:
            _report(logger, e.outcome)
        return EXIT_REJECTED
    except Exception as db_e:
        # Connection failures from psycopg2
        logger.error(f"database: {db_e}")
        return EXIT_FATAL
    finally:
        written = error_log.flush()
        if written is not None:
            logger.info(f"error log: {written}")

    _report(logger, outcome)
    if listed is not None:
        logger.info(f"{len(listed)} residents stored for owner={args.owner}")
    if args.json:
        data = outcome.to_dict()
        if listed is not None:
            data["residents"] = listed
        _print_json(data)
    elif listed is not None:
        _print_residents(listed)
    return EXIT_SUCCESS
