from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled console logging for import runs.

Each line starts with a label (DEBUG, INFO, WARN, ERROR, SUMMARY) followed by
the message, so a wrapper script can grep the one SUMMARY line of a run.
Modules log through ``logging.getLogger(__name__)``; everything under the
``resident_import`` namespace reaches the single stdout handler set up here.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

APP_LOGGER_NAME = "resident_import"

# Sits between INFO (20) and WARNING (30)
SUMMARY_LEVEL = 25
SUMMARY_LABEL = "SUMMARY"

_LABELS: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
    SUMMARY_LEVEL: SUMMARY_LABEL,
}

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``, with the traceback on following lines when present."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled handler to the application logger once.

    Later calls return the already configured logger unchanged.
    """
    global _app_logger
    if _app_logger is not None:
        return _app_logger

    logging.addLevelName(SUMMARY_LEVEL, SUMMARY_LABEL)
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    for old in list(app_logger.handlers):
        app_logger.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    app_logger.addHandler(handler)
    app_logger.propagate = False

    _app_logger = app_logger
    set_debug(False)
    return app_logger


def get_logger() -> logging.Logger:
    return _app_logger or setup_logging()


def set_debug(enabled: bool = True) -> None:
    """Switch the application logger and its handlers between DEBUG and INFO."""
    level = logging.DEBUG if enabled else logging.INFO
    app_logger = get_logger()
    app_logger.setLevel(level)
    for h in app_logger.handlers:
        h.setLevel(level)


def log_summary(line: str) -> None:
    """Emit a run summary at SUMMARY level.

    Accepts either the bare ``key=value`` text or a line already rendered with
    the leading SUMMARY label; the label is printed once.
    """
    prefix = f"{SUMMARY_LABEL} "
    if line.startswith(prefix):
        line = line[len(prefix):]
    get_logger().log(SUMMARY_LEVEL, line)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() rebuilds it (tests)."""
    global _app_logger
    _app_logger = None
