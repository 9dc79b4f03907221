"""Markdown workout export functionality."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ergscan.core.models import RecognizedTable, TableRow
from ergscan.utils.formatting import cell_text, format_category, format_distance

_COLUMNS = (
    ("Time", "time"),
    ("Meters", "meters"),
    ("/500m", "split"),
    ("s/m", "stroke_rate"),
    ("HR", "heart_rate"),
)


def _table_line(label: str, row: Optional[TableRow]) -> str:
    cells = [cell_text(row, name) for _, name in _COLUMNS]
    return f"| {label} | " + " | ".join(cells) + " |"


def table_to_markdown(table: RecognizedTable) -> str:
    """Convert a recognized table to markdown with frontmatter."""
    title = table.workout_type or "Unknown workout"
    day = table.date.isoformat() if table.date is not None else ""
    category = table.category.value if table.category is not None else ""

    header = "| | " + " | ".join(label for label, _ in _COLUMNS) + " |"
    divider = "|---|" + "|".join("---" for _ in _COLUMNS) + "|"
    lines: List[str] = [header, divider, _table_line("Avg", table.averages)]
    for index, row in enumerate(table.rows, 1):
        lines.append(_table_line(str(index), row))

    breakdown: List[str] = []
    if table.reps is not None:
        breakdown.append(f"- **Reps:** {table.reps}")
    if table.work_per_rep:
        breakdown.append(f"- **Work:** {table.work_per_rep}")
    if table.rest_per_rep:
        breakdown.append(f"- **Rest:** {table.rest_per_rep}")
    breakdown_text = "\n".join(breakdown)

    title_yaml = title.replace('"', '\\"')
    return (
        f"---\n"
        f"title: \"{title_yaml}\"\n"
        f"date: \"{day}\"\n"
        f"category: \"{category}\"\n"
        f"total_time: \"{table.total_time or ''}\"\n"
        f"total_distance: {table.total_distance if table.total_distance is not None else 'null'}\n"
        f"---\n\n"
        f"# {title}\n\n"
        f"- **Date:** {day or 'N/A'}\n"
        f"- **Type:** {format_category(table.category)}\n"
        f"- **Total time:** {table.total_time or 'N/A'}\n"
        f"- **Distance:** {format_distance(table.total_distance)}\n"
        f"{breakdown_text}\n\n"
        f"## Splits\n\n"
        + "\n".join(lines)
        + "\n"
    )


def write_table_markdown(path: Path, table: RecognizedTable) -> Path:
    """Write one table as markdown and return output path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(table_to_markdown(table))
    return path
