"""Assign row values to columns using anchors and format grammars."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ergscan.core.constants import (
    DEFAULT_COLUMN_TOLERANCE,
    SPLIT_ANCHOR_DEFAULT,
    TIME_ANCHOR_DEFAULT,
)
from ergscan.core.grouping import Row, row_mid_y
from ergscan.core.models import Box, ColumnAnchors, RecognitionFragment, TableCell, TableRow
from ergscan.core.normalize import normalize_text
from ergscan.core.patterns import (
    is_junk,
    is_rest_marker,
    match_heart_rate,
    match_meters,
    match_rate,
    match_split,
    match_time,
    parse_combined_split_rate,
    split_smooshed,
)

MIN_ROW_FIELDS = 2

COLUMN_GRAMMAR: Dict[str, Callable[[str], bool]] = {
    "time": match_time,
    "meters": match_meters,
    "split": match_split,
    "stroke_rate": match_rate,
}


class _RowBuilder:
    def __init__(self) -> None:
        self.cells: Dict[str, TableCell] = {}
        self.box: Optional[Box] = None

    def has(self, name: str) -> bool:
        return name in self.cells

    def assign(self, name: str, text: str, confidence: float, box: Box) -> bool:
        if name in self.cells:
            return False
        self.cells[name] = TableCell(text=text, confidence=confidence, box=box)
        self.box = box if self.box is None else self.box.union(box)
        return True

    def build(self) -> TableRow:
        return TableRow(box=self.box, **self.cells)


def nearest_column(
    mid_x: float,
    anchors: ColumnAnchors,
    tolerance: float = DEFAULT_COLUMN_TOLERANCE,
) -> Optional[str]:
    best: Optional[str] = None
    best_distance = tolerance
    for name, anchor_x in anchors.columns():
        distance = abs(mid_x - anchor_x)
        if distance < best_distance:
            best, best_distance = name, distance
    return best


def _part_boxes(box: Box, parts: Sequence[str]) -> List[Box]:
    total = sum(len(part) for part in parts) or 1
    boxes: List[Box] = []
    cursor = box.x
    for part in parts:
        width = box.w * len(part) / total
        boxes.append(Box(x=cursor, y=box.y, w=width, h=box.h))
        cursor += width
    return boxes


def _assign_by_pattern(
    builder: _RowBuilder,
    text: str,
    confidence: float,
    box: Box,
    anchors: ColumnAnchors,
    tolerance: float,
) -> Optional[str]:
    mid_x = box.mid_x
    beyond_rate = anchors.rate_x is not None and mid_x > anchors.rate_x + tolerance
    if beyond_rate and match_heart_rate(text) and not builder.has("heart_rate"):
        return "heart_rate" if builder.assign("heart_rate", text, confidence, box) else None
    if match_meters(text) and not builder.has("meters"):
        return "meters" if builder.assign("meters", text, confidence, box) else None
    if match_rate(text) and not builder.has("stroke_rate"):
        return "stroke_rate" if builder.assign("stroke_rate", text, confidence, box) else None
    if match_time(text) or match_split(text):
        time_x = anchors.time_x if anchors.time_x is not None else TIME_ANCHOR_DEFAULT
        split_x = anchors.split_x if anchors.split_x is not None else SPLIT_ANCHOR_DEFAULT
        if abs(mid_x - time_x) < abs(mid_x - split_x) and not builder.has("time") and match_time(text):
            builder.assign("time", text, confidence, box)
            return "time"
        if not builder.has("split") and match_split(text):
            builder.assign("split", text, confidence, box)
            return "split"
        if not builder.has("time") and match_time(text):
            builder.assign("time", text, confidence, box)
            return "time"
    return None


def _place_value(
    builder: _RowBuilder,
    text: str,
    confidence: float,
    box: Box,
    anchors: ColumnAnchors,
    tolerance: float,
) -> Tuple[Optional[str], str]:
    column = nearest_column(box.mid_x, anchors, tolerance)
    if column is not None:
        if COLUMN_GRAMMAR[column](text) and builder.assign(column, text, confidence, box):
            return column, "anchor"
        return None, f"rejected by {column} column"
    assigned = _assign_by_pattern(builder, text, confidence, box, anchors, tolerance)
    return assigned, "pattern"


def _fragment_values(fragment: RecognitionFragment, normalized: str) -> List[Tuple[str, Box]]:
    if any(check(normalized) for check in (match_time, match_split, match_meters, match_rate, match_heart_rate)):
        return [(normalized, fragment.box)]
    parts = split_smooshed(normalized)
    if parts:
        return list(zip(parts, _part_boxes(fragment.box, parts)))
    return [(normalized, fragment.box)]


def extract_row(
    row: Row,
    anchors: ColumnAnchors,
    trace: List[str],
    tolerance: float = DEFAULT_COLUMN_TOLERANCE,
) -> Optional[TableRow]:
    """Build a table row from one display row; None when under two fields."""
    builder = _RowBuilder()
    label = f"y={row_mid_y(row):.2f}"

    for fragment in row:
        normalized = normalize_text(fragment.text)
        if is_junk(fragment.text) or is_junk(normalized):
            trace.append(f"[extract] {label} skip label {fragment.text!r}")
            continue
        if is_rest_marker(normalized):
            trace.append(f"[extract] {label} skip rest marker {fragment.text!r}")
            continue

        combined = parse_combined_split_rate(normalized)
        if combined is not None:
            split_box, rate_box = _part_boxes(fragment.box, combined)
            builder.assign("split", combined[0], fragment.confidence, split_box)
            builder.assign("stroke_rate", combined[1], fragment.confidence, rate_box)
            trace.append(f"[extract] {label} {fragment.text!r} -> split={combined[0]} rate={combined[1]}")
            continue

        values = _fragment_values(fragment, normalized)
        if len(values) > 1:
            trace.append(
                f"[extract] {label} {fragment.text!r} separated into "
                + ", ".join(repr(text) for text, _ in values)
            )
        for text, box in values:
            column, how = _place_value(builder, text, fragment.confidence, box, anchors, tolerance)
            if column is not None:
                trace.append(f"[extract] {label} {text!r} -> {column} ({how})")
            else:
                trace.append(f"[extract] {label} {text!r} unassigned ({how})")

    populated = len(builder.cells)
    if populated < MIN_ROW_FIELDS:
        trace.append(f"[extract] {label} dropped with {populated} field(s)")
        return None
    return builder.build()


def extract_rows(
    rows: Sequence[Row],
    anchors: ColumnAnchors,
    trace: List[str],
    min_y: float,
    tolerance: float = DEFAULT_COLUMN_TOLERANCE,
) -> List[TableRow]:
    """Extract every accepted row below ``min_y`` in display order."""
    accepted: List[TableRow] = []
    for row in rows:
        if not row or row_mid_y(row) <= min_y:
            continue
        first = normalize_text(row[0].text)
        if is_rest_marker(first):
            trace.append(f"[extract] y={row_mid_y(row):.2f} rest row skipped")
            continue
        table_row = extract_row(row, anchors, trace, tolerance)
        if table_row is not None:
            accepted.append(table_row)
    return accepted
