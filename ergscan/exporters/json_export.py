"""JSON export helpers."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ergscan.core.models import (
    ROW_FIELDS,
    Box,
    RecognizedTable,
    TableCell,
    TableRow,
    ValidationReport,
    WorkoutCategory,
)
from ergscan.utils.parsing import InputError, parse_box


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path


def _box_to_dict(box: Optional[Box]) -> Optional[Dict[str, float]]:
    if box is None:
        return None
    return {"x": box.x, "y": box.y, "w": box.w, "h": box.h}


def row_to_dict(row: Optional[TableRow]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    payload: Dict[str, Any] = {}
    for name in ROW_FIELDS:
        cell = getattr(row, name)
        payload[name] = (
            None
            if cell is None
            else {"text": cell.text, "confidence": cell.confidence, "box": _box_to_dict(cell.box)}
        )
    payload["box"] = _box_to_dict(row.box)
    return payload


def table_to_dict(table: RecognizedTable) -> Dict[str, Any]:
    """Convert a table to a plain JSON-serializable mapping."""
    return {
        "workout_type": table.workout_type,
        "category": table.category.value if table.category is not None else None,
        "category_source": table.category_source,
        "date": table.date.isoformat() if table.date is not None else None,
        "total_time": table.total_time,
        "total_distance": table.total_distance,
        "reps": table.reps,
        "work_per_rep": table.work_per_rep,
        "rest_per_rep": table.rest_per_rep,
        "is_variable": table.is_variable,
        "averages": row_to_dict(table.averages),
        "rows": [row_to_dict(row) for row in table.rows],
        "average_confidence": round(table.average_confidence, 4),
    }


def _cell_from_dict(raw: Any) -> Optional[TableCell]:
    if isinstance(raw, str):
        return TableCell(text=raw, confidence=1.0)
    if not isinstance(raw, dict) or not isinstance(raw.get("text"), str):
        return None
    try:
        confidence = float(raw.get("confidence", 1.0))
    except (TypeError, ValueError):
        confidence = 1.0
    return TableCell(text=raw["text"], confidence=confidence, box=parse_box(raw.get("box")))


def row_from_dict(raw: Any) -> Optional[TableRow]:
    if not isinstance(raw, dict):
        return None
    cells = {name: _cell_from_dict(raw.get(name)) for name in ROW_FIELDS}
    return TableRow(box=parse_box(raw.get("box")), **cells)


def table_from_dict(raw: Dict[str, Any]) -> RecognizedTable:
    """Rebuild a table from ``table_to_dict`` output; cells may also be bare strings."""
    category_raw = raw.get("category")
    try:
        category = WorkoutCategory(category_raw) if category_raw else None
    except ValueError as exc:
        raise InputError(f"Unknown workout category: {category_raw}") from exc
    try:
        parsed_date = date.fromisoformat(raw["date"]) if raw.get("date") else None
    except (TypeError, ValueError) as exc:
        raise InputError(f"Invalid date: {raw.get('date')}") from exc

    rows: List[TableRow] = []
    for item in raw.get("rows") or []:
        row = row_from_dict(item)
        if row is not None:
            rows.append(row)

    return RecognizedTable(
        workout_type=raw.get("workout_type"),
        category=category,
        category_source=raw.get("category_source"),
        date=parsed_date,
        total_time=raw.get("total_time"),
        total_distance=raw.get("total_distance"),
        reps=raw.get("reps"),
        work_per_rep=raw.get("work_per_rep"),
        rest_per_rep=raw.get("rest_per_rep"),
        is_variable=raw.get("is_variable"),
        averages=row_from_dict(raw.get("averages")),
        rows=tuple(rows),
        average_confidence=float(raw.get("average_confidence") or 0.0),
    )


def load_table(path: Path) -> RecognizedTable:
    try:
        raw = json.loads(path.read_text())
    except OSError as exc:
        raise InputError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputError(f"Invalid JSON in {path}: {exc}") from exc
    if isinstance(raw, dict) and isinstance(raw.get("table"), dict):
        raw = raw["table"]
    if not isinstance(raw, dict):
        raise InputError(f"{path} must contain a table object")
    return table_from_dict(raw)


def report_to_dict(report: ValidationReport) -> Dict[str, Any]:
    return {
        "ok": report.ok,
        "issues": [
            {"check": issue.check, "row": issue.row_index, "message": issue.message}
            for issue in report.issues
        ],
    }
