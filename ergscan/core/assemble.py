"""Table assembly: one capture's fragments to a RecognizedTable plus trace."""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ergscan.core.classify import classify_with_metadata, find_descriptor, variable_workout_name
from ergscan.core.config import ParserSettings
from ergscan.core.constants import METADATA_ROW_LIMIT
from ergscan.core.extract import extract_rows
from ergscan.core.grouping import Row, group_into_rows, row_mid_y, row_text
from ergscan.core.landmarks import build_column_anchors, find_landmarks, first_landmark
from ergscan.core.models import (
    ColumnAnchors,
    DetectedLandmark,
    Landmark,
    ParseResult,
    RecognitionFragment,
    RecognizedTable,
    TableRow,
    WorkoutCategory,
)
from ergscan.core.normalize import normalize_text
from ergscan.core.patterns import match_date, match_meters, match_rate, match_split, match_time

_TRAILING_TIME_RE = re.compile(r"(?:^|\s)(\d{1,2}:\d{2}(?::\d{2})?\.\d)$")


def _log_normalization(fragments: Sequence[RecognitionFragment], trace: List[str]) -> None:
    trace.append(f"[normalize] {len(fragments)} fragment(s)")
    for fragment in sorted(fragments, key=lambda item: (item.box.mid_y, item.box.x, item.text)):
        normalized = normalize_text(fragment.text)
        if normalized != fragment.text:
            trace.append(f"[normalize] {fragment.text!r} -> {normalized!r}")


def _log_rows(rows: Sequence[Row], trace: List[str]) -> None:
    trace.append(f"[group] {len(rows)} row(s)")
    for index, row in enumerate(rows):
        trace.append(f"[group] row {index} y={row_mid_y(row):.2f}: {row_text(row, ' | ')}")


def _value_count(row: Row) -> int:
    checks = (match_time, match_split, match_meters, match_rate)
    return sum(1 for fragment in row if any(check(normalize_text(fragment.text)) for check in checks))


def metadata_rows(
    rows: Sequence[Row],
    title: DetectedLandmark,
    anchors: ColumnAnchors,
    row_tolerance: float,
) -> List[Row]:
    """Rows between the screen title and the column headers.

    Without a header row, at most a few rows are taken and the first
    row that already looks like table data ends the region.
    """
    region: List[Row] = []
    for row in rows:
        mid_y = row_mid_y(row)
        if mid_y <= title.mid_y + row_tolerance:
            continue
        if anchors.header_y is not None:
            if mid_y >= anchors.header_y - row_tolerance:
                break
        elif len(region) >= METADATA_ROW_LIMIT or _value_count(row) >= 2:
            break
        region.append(row)
    return region


def _windows(row: Row, size: int) -> Iterable[str]:
    for start in range(len(row) - size + 1):
        yield row_text(row[start:start + size])


def find_date(region: Sequence[Row]) -> Optional[Tuple[date, str]]:
    """Single fragments first, then joined windows for dates split across fragments."""
    for row in region:
        candidates = [fragment.text for fragment in row]
        candidates.extend(_windows(row, 3))
        candidates.extend(_windows(row, 2))
        for text in candidates:
            found = match_date(text)
            if found is not None:
                return found, text
    return None


def _trailing_time(text: str) -> Optional[str]:
    normalized = normalize_text(text)
    if match_time(normalized):
        return normalized
    match = _TRAILING_TIME_RE.search(normalized)
    return match.group(1) if match else None


def find_total_time(
    rows: Sequence[Row],
    region: Sequence[Row],
    landmarks: Sequence[DetectedLandmark],
    row_tolerance: float,
) -> Optional[str]:
    """Value next to the "total time" label, else the first time in the metadata region."""
    label = first_landmark(landmarks, Landmark.TOTAL_TIME)
    if label is not None:
        following = [row for row in rows if row_mid_y(row) > label.mid_y - row_tolerance]
        for index, row in enumerate(following[:2]):
            for fragment in row:
                if index == 0 and fragment.box.mid_x <= label.mid_x:
                    continue
                value = _trailing_time(fragment.text)
                if value is not None:
                    return value

    for row in region:
        for fragment in row:
            value = _trailing_time(fragment.text)
            if value is not None:
                return value
    return None


def _average_confidence(averages: Optional[TableRow], rows: Sequence[TableRow]) -> float:
    scores = [
        cell.confidence
        for row in ([averages] if averages is not None else []) + list(rows)
        for _, cell in row.cells()
    ]
    return sum(scores) / len(scores) if scores else 0.0


def _total_distance(averages: Optional[TableRow], rows: Sequence[TableRow]) -> Optional[int]:
    if averages is not None and averages.meters_value() is not None:
        return averages.meters_value()
    values = [row.meters_value() for row in rows if row.meters_value() is not None]
    return sum(values) if values else None


def parse_table(
    fragments: Iterable[RecognitionFragment],
    settings: Optional[ParserSettings] = None,
) -> ParseResult:
    """Parse one capture attempt.

    A pure function of its input: the same fragments always give the same
    table and the same trace. When no screen title is found the result is
    an empty table with ``anchor_found`` False.
    """
    settings = settings or ParserSettings()
    fragments = list(fragments)
    trace: List[str] = []

    _log_normalization(fragments, trace)
    rows = group_into_rows(fragments, settings.row_tolerance)
    _log_rows(rows, trace)

    landmarks = find_landmarks(rows, trace, settings.landmark_max_distance)
    title = first_landmark(landmarks, Landmark.SCREEN_TITLE)
    if title is None:
        trace.append("[anchor] screen title not found; returning empty table")
        return ParseResult(table=RecognizedTable(), trace=trace, anchor_found=False)

    anchors = build_column_anchors(landmarks, trace)
    region = metadata_rows(rows, title, anchors, settings.row_tolerance)

    if anchors.header_y is not None:
        min_y = anchors.header_y + settings.header_margin
    elif region:
        min_y = row_mid_y(region[-1]) + settings.row_tolerance / 2
    else:
        min_y = title.mid_y + settings.row_tolerance / 2
    trace.append(f"[extract] data rows below y={min_y:.2f}")
    extracted = extract_rows(rows, anchors, trace, min_y, settings.column_tolerance)
    averages = extracted[0] if extracted else None
    data_rows = extracted[1:]

    fragment_texts = [fragment.text for row in region for fragment in row]
    row_texts = [row_text(row) for row in region]
    descriptor = find_descriptor(fragment_texts, row_texts, trace)
    classification = classify_with_metadata(
        descriptor, averages, data_rows, settings.interval_ratio_threshold
    )
    if classification.category is None:
        trace.append(f"[assemble] category unresolved: {classification.reasoning}")
    else:
        trace.append(
            f"[assemble] category {classification.category.value} via {classification.method}"
            f" ({classification.reasoning})"
        )

    found_date = find_date(region)
    if found_date is not None:
        trace.append(f"[assemble] date {found_date[0].isoformat()} from {found_date[1]!r}")
    total_time = find_total_time(rows, region, landmarks, settings.row_tolerance)
    trace.append(f"[assemble] total time {total_time or 'not found'}")

    workout_type = descriptor.text if descriptor is not None else None
    reps = descriptor.reps if descriptor is not None else None
    if classification.category is WorkoutCategory.VARIABLE_INTERVAL and data_rows:
        workout_type = variable_workout_name(data_rows) or workout_type
        reps = len(data_rows)
        trace.append(f"[assemble] variable intervals renamed {workout_type!r}, reps={reps}")
    elif descriptor is None and classification.category is WorkoutCategory.FIXED_INTERVAL:
        reps = len(data_rows)

    table = RecognizedTable(
        workout_type=workout_type,
        category=classification.category,
        category_source=classification.method if classification.category is not None else None,
        date=found_date[0] if found_date is not None else None,
        total_time=total_time,
        total_distance=_total_distance(averages, data_rows),
        reps=reps,
        work_per_rep=descriptor.work_per_rep if descriptor is not None else None,
        rest_per_rep=descriptor.rest_per_rep if descriptor is not None else None,
        is_variable=(
            classification.category is WorkoutCategory.VARIABLE_INTERVAL
            if classification.category is not None
            else None
        ),
        averages=averages,
        rows=tuple(data_rows),
        average_confidence=_average_confidence(averages, data_rows),
    )
    trace.append(
        f"[assemble] averages {'found' if averages is not None else 'missing'}, "
        f"{len(data_rows)} data row(s), distance={table.total_distance}, "
        f"confidence={table.average_confidence:.2f}"
    )
    return ParseResult(table=table, trace=trace)
