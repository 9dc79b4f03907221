"""Workout category classification."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ergscan.core.constants import DEFAULT_INTERVAL_RATIO, VARIABLE_PREFIX
from ergscan.core.models import (
    TableRow,
    WorkoutCategory,
    WorkoutClassification,
    WorkoutDescriptor,
)
from ergscan.core.normalize import normalize_descriptor
from ergscan.core.patterns import parse_descriptor
from ergscan.utils.parsing import parse_duration


def _descriptor_candidates(texts: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for text in texts:
        stripped = text.strip()
        if stripped and stripped not in seen:
            seen.append(stripped)
    return seen


def _completes(descriptor: WorkoutDescriptor, candidate: WorkoutDescriptor) -> bool:
    return (
        candidate.category is descriptor.category
        and candidate.rest_per_rep is not None
        and candidate.text.startswith(descriptor.text)
    )


def find_descriptor(
    fragment_texts: Sequence[str],
    row_texts: Sequence[str],
    trace: List[str],
) -> Optional[WorkoutDescriptor]:
    """Try each fragment, then each joined row, under descriptor normalization.

    An interval descriptor read without its rest period is replaced by a
    later candidate that carries the same work portion plus the rest, as
    when the recognizer returns "3x20:00" and "1:00r" as two fragments.
    """
    found: Optional[WorkoutDescriptor] = None
    for text in _descriptor_candidates(list(fragment_texts) + list(row_texts)):
        descriptor = parse_descriptor(text)
        if descriptor is None:
            if found is None:
                trace.append(
                    f"[assemble] descriptor candidate {text!r} -> {normalize_descriptor(text)!r} rejected"
                )
            continue
        if found is None:
            trace.append(
                f"[assemble] descriptor {text!r} -> {descriptor.text!r} ({descriptor.category.value})"
            )
            found = descriptor
        elif _completes(found, descriptor):
            trace.append(f"[assemble] descriptor completed by {text!r} -> {descriptor.text!r}")
            return descriptor
        if not found.category.is_interval or found.rest_per_rep is not None:
            return found
    return found


def classify_from_data_shape(
    averages: Optional[TableRow],
    rows: Sequence[TableRow],
    ratio_threshold: float = DEFAULT_INTERVAL_RATIO,
) -> Tuple[Optional[WorkoutCategory], Optional[str]]:
    """Compare the summary time with the first row's time."""
    if averages is None or not rows:
        return None, "no summary/data rows to compare"
    summary = parse_duration(averages.text("time"))
    first = parse_duration(rows[0].text("time"))
    if not summary or not first:
        return None, "summary or first row time unreadable"
    ratio = summary / first
    if ratio > ratio_threshold:
        return WorkoutCategory.FIXED_INTERVAL, f"summary/first time ratio {ratio:.2f} > {ratio_threshold}"
    return WorkoutCategory.SINGLE, f"summary/first time ratio {ratio:.2f} <= {ratio_threshold}"


def classify_with_metadata(
    descriptor: Optional[WorkoutDescriptor],
    averages: Optional[TableRow],
    rows: Sequence[TableRow],
    ratio_threshold: float = DEFAULT_INTERVAL_RATIO,
) -> WorkoutClassification:
    """Return classification with method and confidence metadata."""
    if descriptor is not None:
        return WorkoutClassification(
            category=descriptor.category,
            method="descriptor",
            confidence=0.97,
            reasoning=f"descriptor {descriptor.text!r}",
        )

    category, reasoning = classify_from_data_shape(averages, rows, ratio_threshold)
    return WorkoutClassification(
        category=category,
        method="data-shape",
        confidence=0.7 if category is not None else 0.0,
        reasoning=reasoning,
    )


def variable_workout_name(rows: Sequence[TableRow]) -> Optional[str]:
    """Name a variable interval workout from its parsed interval meters."""
    meters = [row.text("meters") for row in rows if row.text("meters")]
    if not meters:
        return None
    return VARIABLE_PREFIX + "/".join(f"{value}m" for value in meters)
