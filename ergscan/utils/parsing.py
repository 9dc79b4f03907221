"""Parsing helpers for recognizer input and monitor time strings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ergscan.core.models import Box, RecognitionFragment


class InputError(RuntimeError):
    """Raised when a fragment or table file cannot be read."""


def parse_duration(value: Optional[str]) -> Optional[float]:
    """Parse "M:SS(.d)" or "H:MM:SS(.d)" into seconds."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        return None
    if len(numbers) == 2:
        return numbers[0] * 60 + numbers[1]
    return numbers[0] * 3600 + numbers[1] * 60 + numbers[2]


def parse_length(value: str) -> Tuple[float, str]:
    """Parse a descriptor work/rest token to (value, unit)."""
    raw = value.strip()
    if raw.endswith("m") and raw[:-1].isdigit():
        return float(raw[:-1]), "meter"
    seconds = parse_duration(raw)
    if seconds is None:
        raise ValueError(f"Unsupported length: {value}")
    return seconds, "second"


def parse_box(raw: Any) -> Optional[Box]:
    if isinstance(raw, dict):
        try:
            return Box(
                x=float(raw["x"]),
                y=float(raw["y"]),
                w=float(raw.get("w", raw.get("width", 0.0))),
                h=float(raw.get("h", raw.get("height", 0.0))),
            )
        except (KeyError, TypeError, ValueError):
            return None
    if isinstance(raw, (list, tuple)) and len(raw) == 4:
        try:
            x, y, w, h = (float(item) for item in raw)
        except (TypeError, ValueError):
            return None
        return Box(x=x, y=y, w=w, h=h)
    return None


def fragment_from_dict(item: Dict[str, Any]) -> Optional[RecognitionFragment]:
    """Build a fragment from a plain mapping; None when unusable."""
    text = item.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    box = parse_box(item.get("box"))
    if box is None:
        return None
    try:
        confidence = float(item.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    return RecognitionFragment(text=text, confidence=min(max(confidence, 0.0), 1.0), box=box)


def fragments_from_data(raw_data: Any) -> List[RecognitionFragment]:
    if isinstance(raw_data, dict):
        raw_data = raw_data.get("fragments", [])
    if not isinstance(raw_data, list):
        return []
    fragments: List[RecognitionFragment] = []
    for item in raw_data:
        if not isinstance(item, dict):
            continue
        fragment = fragment_from_dict(item)
        if fragment is not None:
            fragments.append(fragment)
    return fragments


def _load_text(text: str, suffix: str = "") -> Any:
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return yaml.safe_load(text)


def load_fragments_input(
    file_path: Optional[Path],
    read_stdin: bool = False,
    stdin_text: str = "",
) -> List[RecognitionFragment]:
    """Load one capture's fragments from a JSON/YAML file or stdin text."""
    if file_path:
        try:
            text = file_path.read_text()
        except OSError as exc:
            raise InputError(f"Cannot read {file_path}: {exc}") from exc
        suffix = file_path.suffix.lower()
    elif read_stdin:
        text = stdin_text.strip()
        suffix = ""
        if not text:
            return []
    else:
        return []

    try:
        raw_data = _load_text(text, suffix)
    except yaml.YAMLError as exc:
        raise InputError(f"Invalid fragment data in {file_path or 'stdin'}: {exc}") from exc
    return fragments_from_data(raw_data)
