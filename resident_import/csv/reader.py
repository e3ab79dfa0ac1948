from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

"""CSV upload reader.

Row 1 is the header row, every following non-empty line is a data row. All
cells are read as text: IDs keep leading zeros and strings such as "NA" are
not turned into missing values.

Syntax problems (unterminated quotes, rows with more or fewer cells than the
header, whitespace-only lines) are raised as CsvParseError so the whole upload is rejected before any row is
normalized.
"""

__all__ = [
    "CsvParseError",
    "ParsedTable",
    "parse_csv_text",
    "read_upload",
]

_LINE_RE = re.compile(r"line (\d+)")

# Header is spreadsheet row 1
_HEADER_ROW = 1


class CsvParseError(Exception):
    """Raised when the upload is not well-formed CSV."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


@dataclass
class ParsedTable:
    headers: list[str]
    rows: list[dict[str, str | None]] = field(default_factory=list)  # header -> cell text

    def __len__(self) -> int:
        return len(self.rows)


def _dedupe_headers(headers: list[str]) -> list[str]:
    """Suffix repeated header names with _1, _2, ... so no column is lost."""
    seen: dict[str, int] = {}
    result: list[str] = []
    for h in headers:
        if h in seen:
            seen[h] += 1
            candidate = f"{h}_{seen[h]}"
            while candidate in seen:
                seen[h] += 1
                candidate = f"{h}_{seen[h]}"
            seen[candidate] = 0
            result.append(candidate)
        else:
            seen[h] = 0
            result.append(h)
    return result


def _parse_error_details(exc: Exception) -> list[dict[str, Any]]:
    detail: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    m = _LINE_RE.search(str(exc))
    if m:
        detail["row"] = int(m.group(1))
    return [detail]


def read_upload(path: Path) -> str:
    """Read an uploaded file as UTF-8 text (a leading BOM is dropped)."""
    try:
        return path.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvParseError(
            "CSV parsing error", details=[{"type": "UnicodeDecodeError", "message": str(e)}]
        ) from e


def _short_records(text: str, width: int) -> list[dict[str, Any]]:
    """Details for every record with fewer cells than the header.

    pandas fills such records up with empty cells, so the count is taken on
    the raw text. Empty lines are not records; a whitespace-only line is a
    one-cell record.
    """
    details: list[dict[str, Any]] = []
    records = (r for r in csv.reader(io.StringIO(text)) if r)
    for offset, record in enumerate(records):
        if len(record) < width:
            details.append(
                {
                    "type": "FieldMismatch",
                    "code": "TooFewFields",
                    "message": f"Too few fields: expected {width} fields but parsed {len(record)}",
                    "row": offset + _HEADER_ROW,
                }
            )
    return details


def parse_csv_text(text: str) -> ParsedTable:
    """Parse CSV text into a header list and ordered RawRows.

    Steps:
    1. Read every line as strings without a pandas header (so a data row longer
       than the header is a syntax error rather than an inferred index column)
    2. Reject records shorter than the header
    3. Take the first non-empty line as header
    4. Remaining lines become RawRows in file order
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        raise CsvParseError(
            "CSV parsing error", details=[{"type": "EmptyData", "message": "upload is empty"}]
        )
    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CsvParseError("CSV parsing error", details=_parse_error_details(e)) from e

    short = _short_records(text, df.shape[1])
    if short:
        raise CsvParseError("CSV parsing error", details=short)

    header_cells = df.iloc[0].tolist()
    headers = _dedupe_headers(["" if pd.isna(c) else str(c) for c in header_cells])

    rows: list[dict[str, str | None]] = []
    for raw in df.iloc[1:].itertuples(index=False, name=None):
        cells = zip(headers, raw, strict=True)
        rows.append({col: None if pd.isna(val) else str(val) for col, val in cells})
    return ParsedTable(headers=headers, rows=rows)
