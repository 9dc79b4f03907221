from pathlib import Path

import pytest

from ergscan.utils.parsing import (
    InputError,
    fragment_from_dict,
    fragments_from_data,
    load_fragments_input,
    parse_duration,
    parse_length,
)


def test_parse_duration_formats() -> None:
    assert parse_duration("1:59.6") == pytest.approx(119.6)
    assert parse_duration("1:03:45.0") == pytest.approx(3825.0)
    assert parse_duration("20:00") == 1200.0
    assert parse_duration("abc") is None
    assert parse_duration(None) is None


def test_parse_length() -> None:
    assert parse_length("2000m") == (2000.0, "meter")
    assert parse_length("30:00") == (1800.0, "second")
    with pytest.raises(ValueError):
        parse_length("ten")


def test_fragment_from_dict_box_forms() -> None:
    as_dict = fragment_from_dict({"text": "19", "confidence": 0.9, "box": {"x": 0.1, "y": 0.2, "w": 0.1, "h": 0.03}})
    as_list = fragment_from_dict({"text": "19", "confidence": 0.9, "box": [0.1, 0.2, 0.1, 0.03]})
    assert as_dict == as_list
    assert as_dict.box.mid_x == pytest.approx(0.15)


def test_fragment_from_dict_clamps_and_skips() -> None:
    clamped = fragment_from_dict({"text": "19", "confidence": 3, "box": [0, 0, 1, 1]})
    assert clamped.confidence == 1.0
    assert fragment_from_dict({"text": "", "box": [0, 0, 1, 1]}) is None
    assert fragment_from_dict({"text": "19"}) is None


def test_fragments_from_data_accepts_list_or_object() -> None:
    item = {"text": "19", "confidence": 0.9, "box": [0.1, 0.2, 0.1, 0.03]}
    assert len(fragments_from_data([item, "junk"])) == 1
    assert len(fragments_from_data({"fragments": [item]})) == 1
    assert fragments_from_data(42) == []


def test_load_fragments_yaml(tmp_path: Path) -> None:
    path = tmp_path / "capture.yaml"
    path.write_text("fragments:\n  - text: View Detail\n    confidence: 0.9\n    box: [0.3, 0.03, 0.4, 0.04]\n")
    fragments = load_fragments_input(path)
    assert [item.text for item in fragments] == ["View Detail"]


def test_load_fragments_stdin_text() -> None:
    text = '[{"text": "19", "confidence": 0.9, "box": [0.1, 0.2, 0.1, 0.03]}]'
    assert len(load_fragments_input(None, read_stdin=True, stdin_text=text)) == 1
    assert load_fragments_input(None, read_stdin=True, stdin_text="  ") == []


def test_load_fragments_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputError):
        load_fragments_input(tmp_path / "missing.json")


def test_load_fragments_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("fragments: [unclosed")
    with pytest.raises(InputError):
        load_fragments_input(path)
