from datetime import date

import pytest

from ergscan.core.assemble import parse_table
from ergscan.core.completeness import evaluate_completeness
from ergscan.core.config import ParserSettings
from ergscan.core.models import VerdictKind, WorkoutCategory

PHASES = ["[normalize]", "[group]", "[anchor]", "[extract]", "[assemble]"]


def test_fixed_interval_capture_end_to_end(interval_capture) -> None:
    result = parse_table(interval_capture)
    table = result.table
    assert result.anchor_found
    assert table.category is WorkoutCategory.FIXED_INTERVAL
    assert table.category_source == "descriptor"
    assert table.workout_type == "3x20:00/1:00r"
    assert table.reps == 3
    assert table.work_per_rep == "20:00"
    assert table.rest_per_rep == "1:00"
    assert table.is_variable is False
    assert table.date == date(2025, 12, 20)
    assert table.total_time == "1:03:45.0"
    assert table.averages is not None
    assert table.averages.text("meters") == "15004"
    assert len(table.rows) == 3
    assert table.total_distance == 15004
    assert table.average_confidence == pytest.approx(0.95)
    assert evaluate_completeness(table).kind is VerdictKind.READY


def test_trace_phases_in_order(interval_capture) -> None:
    trace = parse_table(interval_capture).trace
    first_seen = [next(i for i, line in enumerate(trace) if line.startswith(tag)) for tag in PHASES]
    assert first_seen == sorted(first_seen)


def test_parse_is_deterministic(interval_capture) -> None:
    first = parse_table(interval_capture)
    second = parse_table(list(reversed(interval_capture)))
    assert first.table == second.table
    assert first.trace == second.trace


def test_missing_title_returns_empty_table(interval_capture) -> None:
    fragments = [item for item in interval_capture if item.text != "View Detail"]
    result = parse_table(fragments)
    assert not result.anchor_found
    assert result.table.is_empty
    assert any("screen title not found" in line for line in result.trace)
    assert not any(line.startswith("[extract]") for line in result.trace)
    assert evaluate_completeness(result.table).kind is VerdictKind.NOT_READY


def test_single_distance_piece(single_distance_capture) -> None:
    table = parse_table(single_distance_capture).table
    assert table.category is WorkoutCategory.SINGLE
    assert table.workout_type == "2000m"
    assert table.reps == 1
    assert table.date == date(2026, 3, 3)
    assert table.total_time == "7:12.4"
    assert [row.text("meters") for row in table.rows] == ["500", "1000", "1500", "2000"]


def test_data_shape_fallback_without_descriptor(make_fragment, make_header_row, make_data_row) -> None:
    fragments = [
        make_fragment("View Detail", 0.5, 0.05, width=0.3),
        *make_header_row(),
        *make_data_row(["1:03:45.0", "15004", "1:59.9", "19"], 0.36),
        *make_data_row(["20:00.0", "5014", "1:59.6", "19"], 0.46),
        *make_data_row(["20:00.0", "4996", "2:00.1", "19"], 0.54),
    ]
    result = parse_table(fragments)
    assert result.table.category is WorkoutCategory.FIXED_INTERVAL
    assert result.table.category_source == "data-shape"
    assert result.table.workout_type is None
    assert result.table.reps == 2
    assert any("via data-shape" in line for line in result.trace)


def test_variable_intervals_renamed_from_rows(make_fragment, make_header_row, make_data_row) -> None:
    fragments = [
        make_fragment("View Detail", 0.5, 0.05, width=0.3),
        make_fragment("v4:00/1:00r...3", 0.3, 0.12, width=0.3),
        *make_header_row(),
        *make_data_row(["11:00.0", "3050", "1:48.1", "28"], 0.36),
        *make_data_row(["4:00.0", "1110", "1:48.1", "28"], 0.46),
        make_fragment("r1:00", 0.15, 0.50),
        *make_data_row(["3:00.0", "840", "1:47.1", "30"], 0.54),
        *make_data_row(["2:00.0", "560", "1:47.1", "31"], 0.62),
    ]
    table = parse_table(fragments).table
    assert table.category is WorkoutCategory.VARIABLE_INTERVAL
    assert table.is_variable is True
    assert table.workout_type == "v1110m/840m/560m"
    assert table.reps == 3


def test_rows_below_two_fields_never_retained(interval_capture, make_fragment) -> None:
    fragments = interval_capture + [make_fragment("5000", 0.38, 0.72)]
    table = parse_table(fragments).table
    assert len(table.rows) == 3
    assert all(row.populated_count >= 2 for row in table.rows)


def test_settings_change_row_grouping(interval_capture) -> None:
    loose = parse_table(interval_capture, ParserSettings(row_tolerance=0.2))
    assert len(loose.table.rows) < 3


def test_descriptor_split_across_fragments_keeps_rest(interval_capture, make_fragment) -> None:
    fragments = [item for item in interval_capture if item.text != "3x20:00,1:00r"]
    fragments += [make_fragment("3x20:00", 0.25, 0.12), make_fragment("1:00r", 0.45, 0.12)]
    table = parse_table(fragments).table
    assert table.workout_type == "3x20:00/1:00r"
    assert table.rest_per_rep == "1:00"
    assert table.reps == 3
