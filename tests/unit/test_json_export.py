import json
from pathlib import Path

import pytest

from ergscan.core.assemble import parse_table
from ergscan.core.models import WorkoutCategory
from ergscan.exporters.json_export import load_table, table_from_dict, table_to_dict, write_json
from ergscan.utils.parsing import InputError


def test_table_to_dict_shape(interval_capture) -> None:
    payload = table_to_dict(parse_table(interval_capture).table)
    assert payload["category"] == "fixed_interval"
    assert payload["date"] == "2025-12-20"
    assert payload["averages"]["meters"]["text"] == "15004"
    assert len(payload["rows"]) == 3
    json.dumps(payload)


def test_table_from_dict_accepts_bare_strings() -> None:
    table = table_from_dict(
        {
            "workout_type": "2000m",
            "category": "single",
            "rows": [{"time": "1:47.0", "meters": "500", "split": "1:47.0"}],
        }
    )
    assert table.category is WorkoutCategory.SINGLE
    assert table.rows[0].text("meters") == "500"
    assert table.rows[0].time.confidence == 1.0


def test_table_from_dict_rejects_unknown_category() -> None:
    with pytest.raises(InputError):
        table_from_dict({"category": "sprint"})


def test_load_table_reads_parse_output(tmp_path: Path, interval_capture) -> None:
    table = parse_table(interval_capture).table
    path = write_json(tmp_path / "out.json", {"table": table_to_dict(table)})
    loaded = load_table(path)
    assert loaded.workout_type == table.workout_type
    assert [row.text("split") for row in loaded.rows] == [row.text("split") for row in table.rows]


def test_load_table_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{nope")
    with pytest.raises(InputError):
        load_table(path)
