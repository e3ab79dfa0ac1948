"""Domain models for the resident CSV import tool.

This package contains the data model shared by the parser, the normalizer,
the batch coordinator and the CLI.
"""

from .aliases import DEFAULT_ALIASES, DEFAULT_ROOM_KEYWORDS, ColumnAliasSet
from .config_models import DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .import_outcome import ImportOutcome, ImportStatus
from .resident import NormalizedResident
from .skip_record import SkipRecord

__all__ = [
    # Configuration models
    "ColumnAliasSet",
    "DEFAULT_ALIASES",
    "DEFAULT_ROOM_KEYWORDS",
    "DatabaseConfig",
    "ImportConfig",
    # Processing models
    "ErrorRecord",
    "ImportOutcome",
    "ImportStatus",
    "NormalizedResident",
    "SkipRecord",
]
