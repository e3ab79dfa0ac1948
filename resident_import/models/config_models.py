from __future__ import annotations

from dataclasses import dataclass, field

from .aliases import DEFAULT_ALIASES, DEFAULT_ROOM_KEYWORDS, ColumnAliasSet

"""Config dataclasses for the resident CSV import tool.

These are the typed configuration objects produced by
resident_import.config.loader and consumed by the batch coordinator and CLI.
"""

DEFAULT_TABLE = "residents"
DEFAULT_SKIP_DETAIL_LIMIT = 10


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    table: str = DEFAULT_TABLE  # Target table holding residents
    skip_detail_limit: int = DEFAULT_SKIP_DETAIL_LIMIT  # SkipRecords echoed back verbatim
    aliases: ColumnAliasSet = DEFAULT_ALIASES
    room_keywords: tuple[str, ...] = DEFAULT_ROOM_KEYWORDS
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
