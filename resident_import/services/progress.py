from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

Large roster exports can hold a few thousand rows; on an interactive terminal
a progress bar shows normalization advancing. In non-TTY environments (CI,
piped output) the bar is disabled so logs stay free of control sequences.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Progress bar over the data rows of one upload."""

    def __init__(self, total_rows: int, *, description: str = "Normalizing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.skipped = 0

        self.enabled = is_tty_enabled() and total_rows > 0
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, skipped: bool = False) -> None:
        """Record one processed row."""
        self.processed += 1
        if skipped:
            self.skipped += 1
        if self.pbar is not None:
            self.pbar.update(1)
            if skipped:
                self.pbar.set_postfix(skipped=self.skipped)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
