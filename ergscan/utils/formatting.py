"""Formatting helpers used by exports and console output."""

from __future__ import annotations

from typing import Optional

from ergscan.core.constants import CATEGORY_LABELS
from ergscan.core.models import TableRow, VerdictKind, WorkoutCategory

VERDICT_LABELS = {
    VerdictKind.NOT_READY: "Not ready",
    VerdictKind.READY: "Ready",
    VerdictKind.INCOMPLETE_MEETS_CRITERIA: "Incomplete (meets criteria)",
}


def format_category(category: Optional[WorkoutCategory]) -> str:
    if category is None:
        return "Unknown"
    return CATEGORY_LABELS.get(category.value, category.value)


def format_distance(meters: Optional[int]) -> str:
    """Format meters as kilometers, or plain meters below 1 km."""
    if not meters:
        return "N/A"
    if meters < 1000:
        return f"{meters}m"
    return f"{meters / 1000:.1f} km"


def format_seconds(seconds: Optional[float]) -> str:
    """Format seconds as H:MM:SS.d or M:SS.d."""
    if seconds is None:
        return "N/A"
    tenths = int(round(seconds * 10))
    whole, tenth = divmod(tenths, 10)
    h, rem = divmod(whole, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}.{tenth}"
    return f"{m}:{s:02d}.{tenth}"


def format_progress(fraction: float) -> str:
    return f"{max(0.0, min(fraction, 1.0)) * 100:.0f}%"


def format_verdict(kind: VerdictKind) -> str:
    return VERDICT_LABELS.get(kind, kind.value)


def cell_text(row: Optional[TableRow], name: str, missing: str = "-") -> str:
    if row is None:
        return missing
    return row.text(name) or missing
