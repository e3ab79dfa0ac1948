from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.aliases import DEFAULT_ALIASES, DEFAULT_ROOM_KEYWORDS
from ..models.config_models import (
    DEFAULT_SKIP_DETAIL_LIMIT,
    DEFAULT_TABLE,
    DatabaseConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the bundled JSON schema
- Apply defaults (table=residents, skip_detail_limit=10, default alias table)
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails schema validation.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def build_config(data: dict[str, Any]) -> ImportConfig:
    _validate_config_schema(data)

    aliases = DEFAULT_ALIASES
    overrides = data.get("column_aliases") or {}
    if overrides:
        aliases = aliases.with_overrides(overrides, version=data.get("alias_version"))

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    keywords = data.get("room_keywords")
    return ImportConfig(
        table=data.get("table", DEFAULT_TABLE),
        skip_detail_limit=data.get("skip_detail_limit", DEFAULT_SKIP_DETAIL_LIMIT),
        aliases=aliases,
        room_keywords=tuple(k.lower() for k in keywords) if keywords else DEFAULT_ROOM_KEYWORDS,
        database=db,
    )


def load_config(path: Path, *, required: bool = True) -> ImportConfig:
    """Load and validate the YAML config at ``path``.

    With ``required=False`` a missing file yields the default configuration.
    """
    if not path.exists():
        if not required:
            return ImportConfig()
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    return build_config(data)
