"""Format grammars and fuzzy label matching for monitor text."""

from __future__ import annotations

import re
from datetime import date
from typing import List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from ergscan.core.constants import (
    DEFAULT_LANDMARK_MAX_DISTANCE,
    HEART_RATE_RANGE,
    JUNK_LABELS,
    LANDMARK_TARGETS,
    MONTHS,
    RATE_RANGE,
    VARIABLE_PREFIX,
)
from ergscan.core.models import Landmark, WorkoutCategory, WorkoutDescriptor
from ergscan.core.normalize import normalize_descriptor, normalize_text

TIME_RE = re.compile(r"^(?:\d{1,2}:\d{2}\.\d|\d{1,2}:\d{2}:\d{2}\.\d)$")
SPLIT_RE = re.compile(r"^\d:\d{2}\.\d{1,2}$")
METERS_RE = re.compile(r"^\d{3,5}$")
RATE_RE = re.compile(r"^\d{2}$")
REST_MARKER_RE = re.compile(r"^r\s*\d{1,2}:\d{2}(?:\.\d)?$", re.IGNORECASE)

_WORK = r"\d{1,2}:\d{2}(?:\.\d)?|\d+m"
_REST = r"\d{1,2}:\d{2}"
FIXED_INTERVAL_RE = re.compile(rf"^(\d+)x({_WORK})(?:/({_REST})r?)?$")
VARIABLE_INTERVAL_RE = re.compile(
    rf"^{VARIABLE_PREFIX}(?:(\d+)x)?({_WORK})/({_REST})r?$"
)
SINGLE_RE = re.compile(r"^(\d+m|\d{1,2}:\d{2}(?::\d{2})?)$")

_DATE_RE = re.compile(r"([A-Za-z]{3})[a-z]*\s+(\d{1,2})\s+(\d{4})")
_DATE_FUSED_RE = re.compile(r"([A-Za-z]{3})[a-z]*\s*(\d{1,2})(\d{4})\b")
_COMBINED_SPLIT_RATE_RE = re.compile(r"^(\d:\d{2}\.\d)(\d{2})$")
_TIME_TRAILING_NUMBER_RE = re.compile(r"^(\d{1,2}:\d{2}(?:\.\d)?)(\d{2,5})$")
_LETTERS_RE = re.compile(r"[A-Za-z]")


def match_time(text: str) -> bool:
    return bool(TIME_RE.match(text))


def match_split(text: str) -> bool:
    return bool(SPLIT_RE.match(text))


def match_meters(text: str) -> bool:
    return bool(METERS_RE.match(text))


def match_rate(text: str) -> bool:
    if not RATE_RE.match(text):
        return False
    low, high = RATE_RANGE
    return low <= int(text) <= high


def match_heart_rate(text: str) -> bool:
    if not text.isdigit():
        return False
    low, high = HEART_RATE_RANGE
    return low <= int(text) <= high


def is_rest_marker(text: str) -> bool:
    """True for rest rows/fragments such as "r2:00"."""
    return bool(REST_MARKER_RE.match(text.strip()))


def _prepare_date_text(text: str) -> str:
    prepared = re.sub(r"[:.,]", " ", normalize_text(text))
    prepared = re.sub(r"(?<=[A-Za-z])(?=\d)", " ", prepared)
    return re.sub(r"\s+", " ", prepared).strip()


def _build_date(month_text: str, day_text: str, year_text: str) -> Optional[date]:
    month = MONTHS.get(month_text.lower())
    if month is None:
        return None
    try:
        return date(int(year_text), month, int(day_text))
    except ValueError:
        return None


def match_date(text: str) -> Optional[date]:
    """Find a "Mon D YYYY" date, tolerating stray punctuation and fused digits."""
    if not text:
        return None
    prepared = _prepare_date_text(text)
    for pattern in (_DATE_RE, _DATE_FUSED_RE):
        for match in pattern.finditer(prepared):
            found = _build_date(match.group(1), match.group(2), match.group(3))
            if found is not None:
                return found
    return None


def parse_descriptor(text: str) -> Optional[WorkoutDescriptor]:
    """Parse a workout descriptor after descriptor normalization."""
    cleaned = normalize_descriptor(text)
    if not cleaned:
        return None

    fixed = FIXED_INTERVAL_RE.match(cleaned)
    if fixed:
        return WorkoutDescriptor(
            text=cleaned,
            category=WorkoutCategory.FIXED_INTERVAL,
            reps=int(fixed.group(1)),
            work_per_rep=fixed.group(2),
            rest_per_rep=fixed.group(3),
        )

    variable = VARIABLE_INTERVAL_RE.match(cleaned)
    if variable:
        return WorkoutDescriptor(
            text=cleaned,
            category=WorkoutCategory.VARIABLE_INTERVAL,
            reps=int(variable.group(1)) if variable.group(1) else None,
            work_per_rep=variable.group(2),
            rest_per_rep=variable.group(3),
        )

    single = SINGLE_RE.match(cleaned)
    if single:
        return WorkoutDescriptor(
            text=cleaned,
            category=WorkoutCategory.SINGLE,
            reps=1,
            work_per_rep=single.group(1),
        )
    return None


def fuzzy_match(text: str, target: str, max_distance: int = DEFAULT_LANDMARK_MAX_DISTANCE) -> bool:
    """Edit-distance match, tightened for short targets."""
    candidate = " ".join(text.lower().split())
    wanted = target.lower()
    if not candidate:
        return False
    if _LETTERS_RE.search(wanted) and not _LETTERS_RE.search(candidate):
        return False
    allowed = min(max_distance, len(wanted) // 3)
    return Levenshtein.distance(candidate, wanted, score_cutoff=allowed) <= allowed


def match_landmark(
    text: str,
    max_distance: int = DEFAULT_LANDMARK_MAX_DISTANCE,
    allowed: Optional[set] = None,
) -> Optional[Landmark]:
    for landmark, targets in LANDMARK_TARGETS:
        if allowed is not None and landmark not in allowed:
            continue
        if any(fuzzy_match(text, target, max_distance) for target in targets):
            return landmark
    return None


def is_junk(text: str) -> bool:
    """Row/column labels that must never be read as data."""
    lowered = " ".join(text.lower().split()).rstrip(":")
    if not lowered:
        return True
    return lowered in JUNK_LABELS


def parse_combined_split_rate(text: str) -> Optional[Tuple[str, str]]:
    """Split "1:59.620" into ("1:59.6", "20") when the tail is a valid rate."""
    match = _COMBINED_SPLIT_RATE_RE.match(text)
    if not match:
        return None
    split, rate = match.group(1), match.group(2)
    if not match_rate(rate):
        return None
    return split, rate


def _is_value(text: str) -> bool:
    return match_rate(text) or match_meters(text)


def split_smooshed(text: str) -> Optional[List[str]]:
    """Separate two values the recognizer fused into one fragment.

    Heuristics run in order: split followed by a rate, a time followed by
    a trailing number, and halving of an even-length run of digits.
    """
    combined = parse_combined_split_rate(text)
    if combined:
        return list(combined)

    trailing = _TIME_TRAILING_NUMBER_RE.match(text)
    if trailing and _is_value(trailing.group(2)):
        return [trailing.group(1), trailing.group(2)]

    if text.isdigit() and len(text) >= 4 and len(text) % 2 == 0:
        half = len(text) // 2
        left, right = text[:half], text[half:]
        if _is_value(left) and _is_value(right):
            return [left, right]
    return None
