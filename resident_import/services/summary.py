from __future__ import annotations

from ..models.import_outcome import ImportOutcome

"""SUMMARY line rendering for an import run."""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # Avoid scientific notation for very small numbers
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(outcome: ImportOutcome) -> str:
    """Render the SUMMARY line for an outcome.

    Format:
    SUMMARY rows={total} valid={valid} skipped={skipped} persisted={persisted}
    status={status} elapsed_sec={elapsed}

    Examples:
        >>> from resident_import.models import ImportOutcome, ImportStatus
        >>> outcome = ImportOutcome(
        ...     status=ImportStatus.COMPLETED, owner_id="ra-1", total_rows=3,
        ...     valid_rows=2, skipped_rows=1, detected_columns=["ID", "Name"],
        ...     column_mapping={}, persisted_count=2, elapsed_seconds=0.25,
        ... )
        >>> render_summary_line(outcome)
        'SUMMARY rows=3 valid=2 skipped=1 persisted=2 status=completed elapsed_sec=0.25'
    """
    return (
        f"SUMMARY rows={outcome.total_rows} "
        f"valid={outcome.valid_rows} "
        f"skipped={outcome.skipped_rows} "
        f"persisted={outcome.persisted_count} "
        f"status={outcome.status.value} "
        f"elapsed_sec={_format_seconds(outcome.elapsed_seconds)}"
    )
