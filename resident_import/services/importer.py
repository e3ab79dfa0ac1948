from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from ..csv.reader import CsvParseError, ParsedTable, parse_csv_text
from ..db.upsert import batch_upsert
from ..logging.error_log import ErrorLogBuffer
from ..models.aliases import ColumnAliasSet
from ..models.config_models import ImportConfig
from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord
from ..models.import_outcome import ImportOutcome, ImportStatus
from ..models.resident import RECORD_COLUMNS, NormalizedResident
from ..models.skip_record import SkipRecord
from .aliases import resolve_columns
from .normalizer import normalize_row, row_number_for
from .progress import RowProgress

"""Batch coordination for resident imports.

Drives one upload through parse → normalize → persist and builds the
ImportOutcome. Per-row problems are data (SkipRecords); only the four
terminal conditions below are raised:

- InputMissingError: no upload at all
- MalformedInputError: CSV syntax error, raised before any row is normalized
- NoValidRowsError: every row failed the name/ID gate
- PersistenceError: the upsert failed; the transaction is rolled back

NoValidRowsError and PersistenceError carry the outcome computed so far so the
caller can still show which columns were detected and why rows were skipped.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CONFLICT_COLUMNS",
    "InputMissingError",
    "MalformedInputError",
    "NoValidRowsError",
    "PersistenceError",
    "ResidentImportError",
    "import_csv",
    "import_residents",
]

# Upsert key: one resident per (owner, institutional ID)
CONFLICT_COLUMNS: tuple[str, ...] = ("user_id", "empl_id")

DEFAULT_SOURCE_NAME = "upload.csv"


class ResidentImportError(Exception):
    """Base exception for terminal import failures.

    ``stage`` is the ImportStatus the call was in when it stopped.
    """
    error_type = "IMPORT_ERROR"
    stage = ImportStatus.PARSING

    def __init__(self, message: str, *, outcome: ImportOutcome | None = None) -> None:
        super().__init__(message)
        self.outcome = outcome

    @property
    def feedback(self) -> dict[str, Any] | None:
        return self.outcome.feedback() if self.outcome is not None else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": str(self),
            "errorType": self.error_type,
            "stage": self.stage.value,
        }
        if self.outcome is not None:
            data["feedback"] = self.outcome.feedback()
        return data


class InputMissingError(ResidentImportError):
    error_type = "INPUT_MISSING"

    def __init__(self, message: str = "No file provided") -> None:
        super().__init__(message)


class MalformedInputError(ResidentImportError):
    error_type = "MALFORMED_INPUT"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["details"] = self.details
        return data


class NoValidRowsError(ResidentImportError):
    error_type = "NO_VALID_ROWS"
    stage = ImportStatus.NORMALIZING

    def __init__(self, message: str, *, outcome: ImportOutcome, suggestion: str) -> None:
        super().__init__(message, outcome=outcome)
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["suggestion"] = self.suggestion
        return data


class PersistenceError(ResidentImportError):
    error_type = "PERSISTENCE_FAILURE"
    stage = ImportStatus.PERSISTING


def _require_owner(owner_id: str | None) -> str:
    if owner_id is None or not str(owner_id).strip():
        raise ValueError("owner_id is required")
    return str(owner_id)


def _build_suggestion(headers: Sequence[str], aliases: ColumnAliasSet) -> str:
    detected = ", ".join(f'"{h}"' for h in headers) if headers else "(none)"
    return (
        "Please ensure your CSV has columns for name (or First Name + Last Name) "
        "and ID (or ASU ID, Student ID, etc.). "
        f"Detected columns: {detected}. "
        f"Accepted name columns: {' / '.join(aliases.first_name)} + "
        f"{' / '.join(aliases.last_name)}, or {' / '.join(aliases.full_name)}. "
        f"Accepted ID columns: {', '.join(aliases.id)}."
    )


def _collapse_duplicates(residents: list[NormalizedResident]) -> list[NormalizedResident]:
    """Keep one resident per external ID, the last occurrence in file order winning.

    A single ON CONFLICT DO UPDATE statement may not touch the same key twice.
    """
    by_key: dict[str, NormalizedResident] = {}
    for r in residents:
        by_key[r.external_id] = r
    return list(by_key.values())


def _persist(
    cursor: Any, table: str, residents: list[NormalizedResident]
) -> list[dict[str, Any]]:
    """Upsert ``residents`` in one transaction and return the stored rows.

    With no cursor (dry-run) nothing is written and the would-be rows are
    returned.
    """
    if cursor is None:
        logger.debug("dry-run: %d residents not written", len(residents))
        return [r.to_record() for r in residents]

    cursor.execute("BEGIN")
    try:
        result = batch_upsert(
            cursor,
            table=table,
            columns=RECORD_COLUMNS,
            rows=[r.to_row() for r in residents],
            conflict_columns=CONFLICT_COLUMNS,
            returning=True,
            metrics_callback=lambda m: logger.debug(
                "upsert table=%s rows=%d elapsed=%.3fs", table, m.row_count, m.elapsed_seconds
            ),
        )
        cursor.execute("COMMIT")
    except Exception:
        try:
            cursor.execute("ROLLBACK")
        except Exception as rollback_e:
            logger.warning("rollback failed table=%s: %s", table, rollback_e)
        raise
    return result.returned_rows or []


def _log_file_error(
    error_log: ErrorLogBuffer | None, source_name: str, error_type: str, message: str
) -> None:
    if error_log is not None:
        error_log.append(ErrorRecord.create(source_name, FILE_LEVEL_ROW, error_type, message))


def import_residents(
    table: ParsedTable,
    owner_id: str,
    cursor: Any = None,
    *,
    config: ImportConfig | None = None,
    aliases: ColumnAliasSet | None = None,
    error_log: ErrorLogBuffer | None = None,
    source_name: str = DEFAULT_SOURCE_NAME,
) -> ImportOutcome:
    """Normalize parsed rows and upsert the valid residents.

    Args:
        table: Parsed upload (headers + RawRows in file order)
        owner_id: Identity owning the imported residents (required)
        cursor: psycopg2 cursor; None runs a dry-run that writes nothing
        config: Import configuration (table name, skip detail limit, aliases)
        aliases: Alias table overriding ``config.aliases``
        error_log: Optional buffer receiving one ErrorRecord per skipped row
            and one per terminal failure
        source_name: Upload name used in error records

    Returns:
        ImportOutcome with status COMPLETED

    Raises:
        NoValidRowsError: No row produced a valid resident
        PersistenceError: The upsert failed (nothing was written)
    """
    owner_id = _require_owner(owner_id)
    start_time = datetime.now(UTC)
    config = config or ImportConfig()
    aliases = aliases or config.aliases

    column_mapping = resolve_columns(table.headers, aliases, config.room_keywords)
    logger.debug(
        "owner=%s rows=%d headers=%s mapping=%s aliases=%s",
        owner_id,
        len(table.rows),
        table.headers,
        column_mapping,
        aliases.version,
    )

    logger.debug("owner=%s stage=%s", owner_id, ImportStatus.NORMALIZING.value)
    valid: list[NormalizedResident] = []
    skipped: list[SkipRecord] = []
    with RowProgress(len(table.rows)) as progress:
        for index, row in enumerate(table.rows):
            result = normalize_row(
                row, row_number_for(index), owner_id, aliases, config.room_keywords
            )
            if isinstance(result, SkipRecord):
                skipped.append(result)
                progress.advance(skipped=True)
            else:
                valid.append(result)
                progress.advance()

    if error_log is not None:
        for skip in skipped:
            error_log.append(ErrorRecord.from_skip(source_name, skip))

    def build(
        status: ImportStatus, persisted: list[dict[str, Any]] | None = None
    ) -> ImportOutcome:
        return ImportOutcome(
            status=status,
            owner_id=owner_id,
            total_rows=len(table.rows),
            valid_rows=len(valid),
            skipped_rows=len(skipped),
            detected_columns=list(table.headers),
            column_mapping=column_mapping,
            skipped_details=skipped[: config.skip_detail_limit],
            persisted_count=len(persisted or []),
            persisted_records=list(persisted or []),
            alias_version=aliases.version,
            elapsed_seconds=(datetime.now(UTC) - start_time).total_seconds(),
        )

    if not valid:
        outcome = build(ImportStatus.REJECTED)
        message = "No valid residents found in CSV"
        _log_file_error(error_log, source_name, NoValidRowsError.error_type, message)
        logger.warning(
            "owner=%s rejected: 0 of %d rows valid (headers=%s)",
            owner_id,
            outcome.total_rows,
            table.headers,
        )
        raise NoValidRowsError(
            message, outcome=outcome, suggestion=_build_suggestion(table.headers, aliases)
        )

    to_persist = _collapse_duplicates(valid)
    if len(to_persist) < len(valid):
        logger.warning(
            "owner=%s %d duplicate IDs in upload, last occurrence kept",
            owner_id,
            len(valid) - len(to_persist),
        )

    logger.debug("owner=%s stage=%s", owner_id, ImportStatus.PERSISTING.value)
    try:
        persisted = _persist(cursor, config.table, to_persist)
    except Exception as e:
        # UpsertError, or a driver error raised by BEGIN/COMMIT
        outcome = build(ImportStatus.REJECTED)
        _log_file_error(error_log, source_name, PersistenceError.error_type, str(e))
        logger.error("owner=%s transaction on %s failed: %s", owner_id, config.table, e)
        raise PersistenceError(str(e), outcome=outcome) from e

    outcome = build(ImportStatus.COMPLETED, persisted)
    logger.info(
        "owner=%s imported %d residents (%d rows skipped)",
        owner_id,
        outcome.persisted_count,
        outcome.skipped_rows,
    )
    return outcome


def import_csv(
    text: str | None,
    owner_id: str,
    cursor: Any = None,
    *,
    config: ImportConfig | None = None,
    aliases: ColumnAliasSet | None = None,
    error_log: ErrorLogBuffer | None = None,
    source_name: str = DEFAULT_SOURCE_NAME,
) -> ImportOutcome:
    """Parse an uploaded CSV text and import it (see import_residents).

    Raises:
        InputMissingError: ``text`` is None
        MalformedInputError: The CSV could not be parsed
        NoValidRowsError, PersistenceError: see import_residents
    """
    owner_id = _require_owner(owner_id)
    if text is None:
        _log_file_error(error_log, source_name, InputMissingError.error_type, "No file provided")
        raise InputMissingError()

    logger.debug("owner=%s stage=%s", owner_id, ImportStatus.PARSING.value)
    try:
        table = parse_csv_text(text)
    except CsvParseError as e:
        _log_file_error(error_log, source_name, MalformedInputError.error_type, str(e.details))
        logger.error("owner=%s %s: %s", owner_id, e, e.details)
        raise MalformedInputError("CSV parsing error", details=e.details) from e

    return import_residents(
        table,
        owner_id,
        cursor,
        config=config,
        aliases=aliases,
        error_log=error_log,
        source_name=source_name,
    )
