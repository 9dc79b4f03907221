"""Configuration loading."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from ergscan.core.constants import (
    DEFAULT_COLUMN_TOLERANCE,
    DEFAULT_HEADER_MARGIN,
    DEFAULT_INTERVAL_RATIO,
    DEFAULT_LANDMARK_MAX_DISTANCE,
    DEFAULT_ROW_TOLERANCE,
    ESTIMATED_ROW_FIELDS,
    MAX_CAPTURE_ATTEMPTS,
)


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


@dataclass(frozen=True)
class ParserSettings:
    """Tunable thresholds for one parse attempt."""

    row_tolerance: float = DEFAULT_ROW_TOLERANCE
    column_tolerance: float = DEFAULT_COLUMN_TOLERANCE
    header_margin: float = DEFAULT_HEADER_MARGIN
    landmark_max_distance: int = DEFAULT_LANDMARK_MAX_DISTANCE
    interval_ratio_threshold: float = DEFAULT_INTERVAL_RATIO


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("ERGSCAN_CONFIG_FILE", "~/.config/ergscan/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    return {
        "parser": {
            "row_tolerance": DEFAULT_ROW_TOLERANCE,
            "column_tolerance": DEFAULT_COLUMN_TOLERANCE,
            "header_margin": DEFAULT_HEADER_MARGIN,
            "landmark_max_distance": DEFAULT_LANDMARK_MAX_DISTANCE,
            "interval_ratio_threshold": DEFAULT_INTERVAL_RATIO,
        },
        "scanning": {
            "max_attempts": MAX_CAPTURE_ATTEMPTS,
            "estimated_row_fields": ESTIMATED_ROW_FIELDS,
        },
        "export": {
            "default_directory": "./workouts",
        },
    }


DEFAULT_CONFIG: Dict[str, Any] = _default_config()


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()
    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))
    return cfg


def _number(raw: Any, default: float) -> float:
    if isinstance(raw, bool):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parser_settings_from_config(config: Dict[str, Any]) -> ParserSettings:
    """Build parser settings from the [parser] table, falling back to defaults."""
    section = config.get("parser", {})
    if not isinstance(section, dict):
        return ParserSettings()
    return ParserSettings(
        row_tolerance=_number(section.get("row_tolerance"), DEFAULT_ROW_TOLERANCE),
        column_tolerance=_number(section.get("column_tolerance"), DEFAULT_COLUMN_TOLERANCE),
        header_margin=_number(section.get("header_margin"), DEFAULT_HEADER_MARGIN),
        landmark_max_distance=int(
            _number(section.get("landmark_max_distance"), DEFAULT_LANDMARK_MAX_DISTANCE)
        ),
        interval_ratio_threshold=_number(
            section.get("interval_ratio_threshold"), DEFAULT_INTERVAL_RATIO
        ),
    )


def scanning_policy_from_config(config: Dict[str, Any]) -> Dict[str, int]:
    section = config.get("scanning", {})
    if not isinstance(section, dict):
        section = {}
    return {
        "max_attempts": int(_number(section.get("max_attempts"), MAX_CAPTURE_ATTEMPTS)),
        "estimated_row_fields": int(
            _number(section.get("estimated_row_fields"), ESTIMATED_ROW_FIELDS)
        ),
    }


def resolve_output_dir(config: Dict[str, Any], explicit: Optional[Path] = None) -> Path:
    """Resolve output directory with CLI override first."""
    if explicit is not None:
        return explicit.expanduser().resolve()
    raw = os.getenv("ERGSCAN_OUTPUT_DIR") or config.get("export", {}).get(
        "default_directory",
        "./workouts",
    )
    return expand_path(raw)
