from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
from typer.testing import CliRunner

from ergscan.core.models import Box, RecognitionFragment

TIME_X = 0.15
METERS_X = 0.38
SPLIT_X = 0.60
RATE_X = 0.80


def fragment(
    text: str,
    mid_x: float,
    mid_y: float,
    confidence: float = 0.95,
    width: float = 0.1,
    height: float = 0.03,
) -> RecognitionFragment:
    return RecognitionFragment(
        text=text,
        confidence=confidence,
        box=Box(x=mid_x - width / 2, y=mid_y - height / 2, w=width, h=height),
    )


def data_row(values: List[str], mid_y: float, confidence: float = 0.95) -> List[RecognitionFragment]:
    columns = [TIME_X, METERS_X, SPLIT_X, RATE_X]
    return [fragment(value, x, mid_y, confidence) for value, x in zip(values, columns)]


def header_row(mid_y: float = 0.28) -> List[RecognitionFragment]:
    return [
        fragment("Time", TIME_X, mid_y),
        fragment("Meters", METERS_X, mid_y),
        fragment("/500m", SPLIT_X, mid_y),
        fragment("s/m", RATE_X, mid_y),
    ]


def fragment_to_dict(item: RecognitionFragment) -> Dict[str, Any]:
    box = item.box
    return {
        "text": item.text,
        "confidence": item.confidence,
        "box": {"x": box.x, "y": box.y, "w": box.w, "h": box.h},
    }


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def make_fragment() -> Callable[..., RecognitionFragment]:
    return fragment


@pytest.fixture()
def make_data_row() -> Callable[..., List[RecognitionFragment]]:
    return data_row


@pytest.fixture()
def make_header_row() -> Callable[..., List[RecognitionFragment]]:
    return header_row


@pytest.fixture()
def interval_capture() -> List[RecognitionFragment]:
    """A clean capture of a 3x20:00/1:00r workout."""
    return [
        fragment("View Detail", 0.5, 0.05, width=0.3),
        fragment("3x20:00,1:00r", 0.3, 0.12, width=0.3),
        fragment("Dec 20 2025 1:03:45.0", 0.45, 0.19, width=0.6),
        *header_row(),
        *data_row(["1:03:45.0", "15004", "1:59.9", "19"], 0.36),
        *data_row(["20:00.0", "5014", "1:59.6", "19"], 0.46),
        *data_row(["20:00.0", "4996", "2:00.1", "19"], 0.54),
        *data_row(["20:00.0", "4994", "2:00.2", "19"], 0.62),
    ]


@pytest.fixture()
def single_distance_capture() -> List[RecognitionFragment]:
    """A 2000m piece: per-split times against cumulative meters."""
    return [
        fragment("View Detail", 0.5, 0.05, width=0.3),
        fragment("2000m", 0.3, 0.12),
        fragment("Mar 3 2026", 0.25, 0.19, width=0.2),
        fragment("7:12.4", 0.7, 0.19),
        *header_row(),
        *data_row(["7:12.4", "2000", "1:48.1", "30"], 0.36),
        *data_row(["1:47.0", "500", "1:47.0", "31"], 0.46),
        *data_row(["1:48.0", "1000", "1:48.0", "30"], 0.54),
        *data_row(["1:49.0", "1500", "1:49.0", "29"], 0.62),
        *data_row(["1:48.4", "2000", "1:48.4", "32"], 0.70),
    ]


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_capture(write_temp_json):
    def _write(name: str, fragments: List[RecognitionFragment]) -> Path:
        return write_temp_json(name, {"fragments": [fragment_to_dict(item) for item in fragments]})

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
