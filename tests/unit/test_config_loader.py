from __future__ import annotations

from pathlib import Path

import pytest

from resident_import.config.loader import ConfigError, load_config
from resident_import.models.aliases import DEFAULT_ALIASES, DEFAULT_ROOM_KEYWORDS
from resident_import.models.config_models import ImportConfig


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.table == "residents"
    assert cfg.skip_detail_limit == 10
    assert cfg.aliases is DEFAULT_ALIASES
    assert cfg.room_keywords == DEFAULT_ROOM_KEYWORDS
    assert cfg.database.user == "appuser"
    assert cfg.database.port == 5432
    assert cfg.database.dsn is None


def test_load_config_empty_file_uses_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == ImportConfig()


def test_load_config_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(missing)


def test_load_config_missing_file_optional(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    assert load_config(missing, required=False) == ImportConfig()


def test_load_config_alias_overrides(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + (
        "column_aliases:\n"
        "  id: [Badge Number, ID]\n"
        "alias_version: campus-2025\n"
        "room_keywords: [Hall]\n"
    )
    write_config.write_text(text, encoding="utf-8")
    cfg = load_config(write_config)
    assert cfg.aliases.id == ("Badge Number", "ID")
    assert cfg.aliases.email == DEFAULT_ALIASES.email
    assert cfg.aliases.version == "campus-2025"
    assert cfg.room_keywords == ("hall",)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_unknown_alias_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "column_aliases:\n  phone: [Phone]\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_negative_limit(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "skip_detail_limit: 10", "skip_detail_limit: -1"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("table: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(path)


def test_load_config_non_mapping_root(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)
