"""Text helpers."""

from __future__ import annotations

import re

from ergscan.core.models import RecognizedTable


def slugify(value: str, max_len: int = 50) -> str:
    """Generate filesystem-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    if not slug:
        slug = "untitled"
    return slug[:max_len]


def table_filename(table: RecognizedTable, extension: str) -> str:
    """Name a saved table as ``<date>-<workout slug>.<extension>``."""
    day = table.date.isoformat() if table.date is not None else "undated"
    return f"{day}-{slugify(table.workout_type or 'untitled')}.{extension}"
