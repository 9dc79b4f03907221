"""Completeness decision and advisory field progress."""

from __future__ import annotations

from typing import List, Optional, Tuple

from ergscan.core.constants import ESTIMATED_ROW_FIELDS, LAST_ROW_RATE_MIN_METERS
from ergscan.core.models import (
    CompletenessVerdict,
    RecognizedTable,
    VerdictKind,
    WorkoutCategory,
)
from ergscan.core.patterns import SINGLE_RE
from ergscan.utils.parsing import parse_duration, parse_length

_AVERAGE_FIELDS = ("time", "meters", "split", "stroke_rate")
_ROW_ESSENTIALS = ("time", "meters", "split")


def lock_blockers(table: Optional[RecognizedTable]) -> List[str]:
    """Reasons the table cannot be locked yet; empty when it can."""
    if table is None:
        return ["no table"]
    if not table.workout_type:
        return ["missing workout type"]

    averages = table.averages
    if averages is None or any(averages.text(name) is None for name in _AVERAGE_FIELDS):
        return ["averages need time, meters, split and rate"]

    blockers: List[str] = []
    rows = table.rows
    complete = sum(1 for row in rows if all(row.text(name) is not None for name in _ROW_ESSENTIALS))
    if complete < len(rows):
        blockers.append(f"only {complete}/{len(rows)} rows have time/meters/split")

    missing_rate = [index for index, row in enumerate(rows[:-1]) if row.text("stroke_rate") is None]
    if missing_rate:
        blockers.append(f"rows {missing_rate} have no stroke rate")

    if rows and rows[-1].text("stroke_rate") is None:
        last_meters = rows[-1].meters_value() or 0
        if last_meters >= LAST_ROW_RATE_MIN_METERS:
            blockers.append(f"last row has {last_meters}m but no stroke rate")
    return blockers


def is_ready_to_lock(table: Optional[RecognizedTable]) -> bool:
    return not lock_blockers(table)


def check_data_completeness(table: RecognizedTable) -> Tuple[bool, Optional[str]]:
    """Whether the rows cover the whole workout the descriptor promises.

    Fixed intervals need one row per rep. Single pieces need the last
    cumulative split to reach the target distance or time. Variable
    intervals carry no reliable target and are always complete.
    """
    rows = table.rows
    if table.category is WorkoutCategory.FIXED_INTERVAL:
        if table.reps is not None and len(rows) < table.reps:
            return False, f"{len(rows)}/{table.reps} intervals captured"
        return True, None

    if table.category is WorkoutCategory.SINGLE and table.work_per_rep and rows:
        if not SINGLE_RE.match(table.work_per_rep):
            return True, None
        try:
            target, unit = parse_length(table.work_per_rep)
        except ValueError:
            return True, None
        if unit == "meter":
            reached = rows[-1].meters_value() or 0
            if reached < target:
                return False, f"{reached}m of {int(target)}m captured"
        else:
            reached_time = parse_duration(rows[-1].text("time")) or 0.0
            if reached_time < target:
                return False, f"{reached_time:.0f}s of {target:.0f}s captured"
    return True, None


def evaluate_completeness(
    table: Optional[RecognizedTable],
    is_first_screen: bool = True,
) -> CompletenessVerdict:
    """Classify the accumulated table as not ready, ready or incomplete-but-lockable."""
    blockers = lock_blockers(table)
    if blockers:
        return CompletenessVerdict(
            kind=VerdictKind.NOT_READY,
            is_first_screen=is_first_screen,
            reason="; ".join(blockers),
        )
    complete, reason = check_data_completeness(table)
    if not complete:
        return CompletenessVerdict(
            kind=VerdictKind.INCOMPLETE_MEETS_CRITERIA,
            table=table,
            is_first_screen=is_first_screen,
            reason=reason,
        )
    return CompletenessVerdict(kind=VerdictKind.READY, table=table, is_first_screen=is_first_screen)


def field_progress(
    table: Optional[RecognizedTable],
    estimated_row_fields: int = ESTIMATED_ROW_FIELDS,
) -> float:
    """Populated fields over expected fields, in [0, 1]; advisory only."""
    if table is None:
        return 0.0

    filled = 0
    expected = len(_AVERAGE_FIELDS)
    if table.averages is not None:
        filled += sum(1 for name in _AVERAGE_FIELDS if table.averages.text(name) is not None)

    if not table.rows:
        expected += estimated_row_fields
    for index, row in enumerate(table.rows):
        expected += len(_ROW_ESSENTIALS)
        filled += sum(1 for name in _ROW_ESSENTIALS if row.text(name) is not None)
        has_rate = row.text("stroke_rate") is not None
        # The last row's rate only counts once it is present.
        if index < len(table.rows) - 1 or has_rate:
            expected += 1
            filled += int(has_rate)
    return filled / expected if expected else 0.0
