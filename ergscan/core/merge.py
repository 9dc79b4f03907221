"""Accumulate tables across capture attempts and across screens.

Both merge modes are pure: they never mutate their inputs and always
return a new ``RecognizedTable``.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from ergscan.core.classify import variable_workout_name
from ergscan.core.models import (
    ROW_FIELDS,
    RecognizedTable,
    TableCell,
    TableRow,
    WorkoutCategory,
)

_SCALAR_FIELDS = (
    "workout_type",
    "date",
    "total_time",
    "total_distance",
    "reps",
    "work_per_rep",
    "rest_per_rep",
    "is_variable",
)
_CATEGORY_FIELDS = (
    "category",
    "category_source",
    "workout_type",
    "reps",
    "work_per_rep",
    "rest_per_rep",
    "is_variable",
)


def _is_empty(value: object) -> bool:
    return value is None or value == ""


def merge_cell(existing: Optional[TableCell], new: Optional[TableCell]) -> Optional[TableCell]:
    """Higher confidence wins; ties keep the value already held."""
    if existing is None:
        return new
    if new is None:
        return existing
    return new if new.confidence > existing.confidence else existing


def merge_row(existing: Optional[TableRow], new: Optional[TableRow]) -> Optional[TableRow]:
    if existing is None:
        return new
    if new is None:
        return existing
    cells: Dict[str, Optional[TableCell]] = {
        name: merge_cell(getattr(existing, name), getattr(new, name)) for name in ROW_FIELDS
    }
    return TableRow(box=new.box or existing.box, **cells)


def merge_rows(existing: Sequence[TableRow], new: Sequence[TableRow]) -> List[TableRow]:
    """Pair rows by index; unmatched tail rows from either side are kept."""
    merged: List[TableRow] = []
    for index in range(max(len(existing), len(new))):
        row = merge_row(
            existing[index] if index < len(existing) else None,
            new[index] if index < len(new) else None,
        )
        if row is not None:
            merged.append(row)
    return merged


def _average_confidence(table: RecognizedTable) -> float:
    rows = ([table.averages] if table.averages is not None else []) + list(table.rows)
    scores = [cell.confidence for row in rows for _, cell in row.cells()]
    return sum(scores) / len(scores) if scores else 0.0


def _total_distance(table: RecognizedTable) -> Optional[int]:
    if table.averages is not None and table.averages.meters_value() is not None:
        return table.averages.meters_value()
    values = [row.meters_value() for row in table.rows if row.meters_value() is not None]
    return sum(values) if values else table.total_distance


def _finalize(table: RecognizedTable) -> RecognizedTable:
    changes = {
        "total_distance": _total_distance(table),
        "average_confidence": _average_confidence(table),
    }
    if table.category is WorkoutCategory.VARIABLE_INTERVAL and table.rows:
        changes["workout_type"] = variable_workout_name(table.rows) or table.workout_type
        changes["reps"] = len(table.rows)
    return table.with_changes(**changes)


def _locked_category(table: RecognizedTable) -> bool:
    return table.category is not None and table.category_source == "descriptor"


def merge_tables(existing: Optional[RecognizedTable], new: RecognizedTable) -> RecognizedTable:
    """Merge a new capture attempt of the same screen into the accumulation."""
    if existing is None:
        return new

    changes = {
        name: getattr(existing, name) if _is_empty(getattr(new, name)) else getattr(new, name)
        for name in _SCALAR_FIELDS
    }
    if _locked_category(existing):
        # A descriptor classification is never overridden.
        changes.update({name: getattr(existing, name) for name in _CATEGORY_FIELDS})
    elif _is_empty(new.category):
        changes["category"] = existing.category
        changes["category_source"] = existing.category_source
    else:
        changes["category"] = new.category
        changes["category_source"] = new.category_source

    merged = existing.with_changes(
        averages=merge_row(existing.averages, new.averages),
        rows=tuple(merge_rows(existing.rows, new.rows)),
        **changes,
    )
    return _finalize(merged)


def _same_text(left: TableRow, right: TableRow, name: str) -> bool:
    return left.text(name) == right.text(name)


def _both(left: TableRow, right: TableRow, name: str) -> bool:
    return left.text(name) is not None and right.text(name) is not None


def _fixed_interval_equal(left: TableRow, right: TableRow) -> bool:
    return all(_same_text(left, right, name) for name in ("meters", "time", "stroke_rate"))


def _single_equal(left: TableRow, right: TableRow) -> bool:
    if _both(left, right, "meters"):
        return left.meters_value() == right.meters_value()
    if _both(left, right, "time"):
        return _same_text(left, right, "time")
    return False


def _variable_interval_equal(left: TableRow, right: TableRow) -> bool:
    # Reps differ in length, so both distance and time must agree.
    return (
        _both(left, right, "meters")
        and _both(left, right, "time")
        and left.meters_value() == right.meters_value()
        and _same_text(left, right, "time")
    )


ROW_EQUALITY: Dict[Optional[WorkoutCategory], Callable[[TableRow, TableRow], bool]] = {
    WorkoutCategory.FIXED_INTERVAL: _fixed_interval_equal,
    WorkoutCategory.SINGLE: _single_equal,
    WorkoutCategory.VARIABLE_INTERVAL: _variable_interval_equal,
    None: _single_equal,
}


def rows_equal(category: Optional[WorkoutCategory], left: TableRow, right: TableRow) -> bool:
    return ROW_EQUALITY[category](left, right)


def merge_screens(first: RecognizedTable, second: RecognizedTable) -> RecognizedTable:
    """Combine two screens of one workout.

    The first screen's metadata wins; the second only fills gaps. Rows
    from the second screen are appended unless an existing row already
    matches under the category's equality rule.
    """
    category = first.category if first.category is not None else second.category
    rows: List[TableRow] = list(first.rows)
    for candidate in second.rows:
        if not any(rows_equal(category, existing, candidate) for existing in rows):
            rows.append(candidate)

    changes = {
        name: getattr(second, name) if _is_empty(getattr(first, name)) else getattr(first, name)
        for name in _SCALAR_FIELDS
    }
    if first.category is None:
        changes["category"] = second.category
        changes["category_source"] = second.category_source

    merged = first.with_changes(
        averages=merge_row(first.averages, second.averages),
        rows=tuple(rows),
        **changes,
    )
    return _finalize(merged)
