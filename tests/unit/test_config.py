from __future__ import annotations

import json
from pathlib import Path

import pytest

from ergscan.core.config import (
    ConfigError,
    ParserSettings,
    _deep_merge,
    default_config_path,
    expand_path,
    load_config,
    parser_settings_from_config,
    resolve_output_dir,
    scanning_policy_from_config,
)


def test_deep_merge_nested_dicts() -> None:
    base = {"a": {"b": 1, "c": 2}, "x": 3}
    override = {"a": {"b": 9}, "y": 4}
    merged = _deep_merge(base, override)
    assert merged == {"a": {"b": 9, "c": 2}, "x": 3, "y": 4}
    assert base["a"]["b"] == 1


def test_expand_path_expands_home_and_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ERGSCAN_TMP_PATH", str(tmp_path))
    expanded = expand_path("$ERGSCAN_TMP_PATH/config.toml")
    assert expanded == (tmp_path / "config.toml").resolve()


def test_default_config_path_uses_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    monkeypatch.setenv("ERGSCAN_CONFIG_FILE", str(path))
    assert default_config_path() == path.resolve()


def test_load_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.toml")
    assert cfg["parser"]["row_tolerance"] == 0.03
    assert cfg["scanning"]["max_attempts"] == 4
    assert cfg["export"]["default_directory"] == "./workouts"


def test_load_config_merges_toml(write_temp_toml) -> None:
    path = write_temp_toml(
        "config.toml",
        """
        [parser]
        column_tolerance = 0.08

        [scanning]
        max_attempts = 6
        """,
    )
    cfg = load_config(path)
    assert cfg["parser"]["column_tolerance"] == 0.08
    assert cfg["parser"]["row_tolerance"] == 0.03
    assert cfg["scanning"]["max_attempts"] == 6


def test_load_config_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"parser": {"header_margin": 0.05}}))
    assert load_config(path)["parser"]["header_margin"] == 0.05


def test_load_config_invalid_toml_raises(write_temp_toml) -> None:
    path = write_temp_toml("bad.toml", "[parser\nrow_tolerance = ")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_non_table_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        load_config(path)


def test_parser_settings_from_config_falls_back() -> None:
    settings = parser_settings_from_config(
        {"parser": {"row_tolerance": "0.05", "column_tolerance": "wide", "landmark_max_distance": 1}}
    )
    assert settings.row_tolerance == 0.05
    assert settings.column_tolerance == ParserSettings().column_tolerance
    assert settings.landmark_max_distance == 1
    assert parser_settings_from_config({"parser": "oops"}) == ParserSettings()


def test_scanning_policy_from_config() -> None:
    assert scanning_policy_from_config({}) == {"max_attempts": 4, "estimated_row_fields": 20}
    assert scanning_policy_from_config({"scanning": {"max_attempts": 2}})["max_attempts"] == 2


def test_resolve_output_dir_prefers_explicit(tmp_path: Path) -> None:
    assert resolve_output_dir({}, explicit=tmp_path) == tmp_path.resolve()


def test_resolve_output_dir_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ERGSCAN_OUTPUT_DIR", str(tmp_path / "out"))
    assert resolve_output_dir({"export": {"default_directory": "./ignored"}}) == (tmp_path / "out").resolve()
