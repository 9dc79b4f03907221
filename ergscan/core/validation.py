"""Split accuracy and split consistency checks for a ready table."""

from __future__ import annotations

import math
import re
from typing import List, Optional

from ergscan.core.models import RecognizedTable, TableRow, ValidationIssue, ValidationReport
from ergscan.utils.formatting import format_seconds
from ergscan.utils.parsing import parse_duration

_DISTANCE_PIECE_RE = re.compile(r"^\d{3,5}m$")
_SPLIT_TOLERANCE = 0.1
_STEP_TOLERANCE = 1.0
_EPSILON = 1e-6


def _meters(row: Optional[TableRow]) -> Optional[float]:
    if row is None:
        return None
    value = row.meters_value()
    return float(value) if value is not None else None


def _seconds(row: Optional[TableRow]) -> Optional[float]:
    if row is None:
        return None
    return parse_duration(row.text("time"))


def is_distance_piece(table: RecognizedTable) -> bool:
    if table.category is not None and table.category.is_interval:
        return False
    return bool(table.workout_type and _DISTANCE_PIECE_RE.match(table.workout_type))


def _expected_split(table: RecognizedTable, index: int, distance_piece: bool) -> Optional[float]:
    row = table.rows[index]
    previous = table.rows[index - 1] if index > 0 else None
    time = _seconds(row)
    meters = _meters(row)
    if time is None or meters is None or time <= 0 or meters <= 0:
        return None

    if table.category is not None and table.category.is_interval:
        return time / meters * 500.0
    if distance_piece:
        effective = meters - (_meters(previous) or 0.0)
        return time / effective * 500.0 if effective > 0 else None
    effective_time = time - (_seconds(previous) or 0.0)
    return effective_time / meters * 500.0 if effective_time > 0 else None


def check_split_accuracy(table: RecognizedTable) -> List[ValidationIssue]:
    """Each row's split must match time/meters to a tenth of a second."""
    issues: List[ValidationIssue] = []
    distance_piece = is_distance_piece(table)
    for index, row in enumerate(table.rows):
        actual = parse_duration(row.text("split"))
        if actual is None:
            continue
        expected = _expected_split(table, index, distance_piece)
        if expected is None:
            continue
        floored = math.floor(expected * 10.0 + _EPSILON) / 10.0
        if abs(floored - actual) > _SPLIT_TOLERANCE + _EPSILON:
            issues.append(
                ValidationIssue(
                    check="split_accuracy",
                    row_index=index,
                    message=f"expected split {format_seconds(floored)}, read {row.text('split')}",
                )
            )
    return issues


def check_split_consistency(table: RecognizedTable) -> List[ValidationIssue]:
    """Cumulative single-piece splits must advance by the first split's step.

    The last row is exempt since it may be a partial split.
    """
    if (table.category is not None and table.category.is_interval) or len(table.rows) < 2:
        return []

    distance_piece = is_distance_piece(table)
    value = _meters if distance_piece else _seconds
    unit = "m" if distance_piece else "s"
    step = value(table.rows[0])
    if step is None or step <= 0:
        return []

    issues: List[ValidationIssue] = []
    for index in range(1, len(table.rows) - 1):
        current = value(table.rows[index])
        previous = value(table.rows[index - 1])
        if current is None or previous is None:
            continue
        gap = current - previous
        if abs(gap - step) > _STEP_TOLERANCE:
            issues.append(
                ValidationIssue(
                    check="split_consistency",
                    row_index=index,
                    message=f"gap {gap:g}{unit} differs from expected {step:g}{unit}",
                )
            )
    return issues


def validate_table(table: RecognizedTable) -> ValidationReport:
    return ValidationReport(issues=tuple(check_split_accuracy(table) + check_split_consistency(table)))
