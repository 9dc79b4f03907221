"""Landmark detection and column anchor derivation."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ergscan.core.constants import (
    DEFAULT_LANDMARK_MAX_DISTANCE,
    DEFAULT_ROW_TOLERANCE,
    MULTI_WORD_LANDMARKS,
    RATE_ANCHOR_CEILING,
    RATE_ANCHOR_DEFAULT,
    RATE_ANCHOR_OFFSET,
)
from ergscan.core.grouping import Row, row_mid_x, row_mid_y, row_text
from ergscan.core.models import HEADER_LANDMARKS, ColumnAnchors, DetectedLandmark, Landmark
from ergscan.core.normalize import normalize_text
from ergscan.core.patterns import match_landmark


def _match_candidates(
    raw: str,
    max_distance: int,
    allowed: Optional[set] = None,
) -> Optional[Landmark]:
    for candidate in (raw, normalize_text(raw)):
        landmark = match_landmark(candidate, max_distance, allowed)
        if landmark is not None:
            return landmark
    return None


def _detect_in_row(row: Row, max_distance: int) -> List[DetectedLandmark]:
    found: List[DetectedLandmark] = []
    consumed = set()

    # Labels like "Total Time" often come back as two fragments.
    for index in range(len(row) - 1):
        pair = row[index:index + 2]
        landmark = _match_candidates(row_text(pair), max_distance, MULTI_WORD_LANDMARKS)
        if landmark is not None:
            found.append(DetectedLandmark(landmark, row_mid_x(pair), row_mid_y(pair)))
            consumed.update((index, index + 1))

    for index, fragment in enumerate(row):
        if index in consumed:
            continue
        landmark = _match_candidates(fragment.text, max_distance)
        if landmark is not None:
            found.append(DetectedLandmark(landmark, fragment.box.mid_x, fragment.box.mid_y))

    # The joined row can still spell a label the single fragments missed.
    missing = set(Landmark) - {item.landmark for item in found}
    if missing and len(row) > 1:
        landmark = _match_candidates(row_text(row), max_distance, missing)
        if landmark is not None:
            found.append(DetectedLandmark(landmark, row_mid_x(row), row_mid_y(row)))
    return found


def find_landmarks(
    rows: Sequence[Row],
    trace: List[str],
    max_distance: int = DEFAULT_LANDMARK_MAX_DISTANCE,
) -> List[DetectedLandmark]:
    """Locate structural labels, trying raw, normalized and row-joined text."""
    landmarks: List[DetectedLandmark] = []
    for row in rows:
        for landmark in _detect_in_row(row, max_distance):
            trace.append(
                f"[anchor] landmark {landmark.landmark.value} at x={landmark.mid_x:.2f} y={landmark.mid_y:.2f}"
            )
            landmarks.append(landmark)
    return landmarks


def first_landmark(
    landmarks: Sequence[DetectedLandmark],
    kind: Landmark,
) -> Optional[DetectedLandmark]:
    return next((landmark for landmark in landmarks if landmark.landmark is kind), None)


def _header_row(
    candidates: Sequence[DetectedLandmark],
    tolerance: float = DEFAULT_ROW_TOLERANCE,
) -> List[DetectedLandmark]:
    # The header row is the band holding the most header labels; a stray
    # "500m" descriptor above it must not become the split anchor.
    best: List[DetectedLandmark] = []
    for candidate in candidates:
        band = [other for other in candidates if abs(other.mid_y - candidate.mid_y) < tolerance]
        if len(band) > len(best):
            best = band
    return best


def build_column_anchors(
    landmarks: Sequence[DetectedLandmark],
    trace: List[str],
) -> ColumnAnchors:
    """Derive this attempt's column positions from header landmarks."""
    positions: Dict[Landmark, float] = {}
    header_ys: List[float] = []

    title = first_landmark(landmarks, Landmark.SCREEN_TITLE)
    candidates = [
        landmark
        for landmark in landmarks
        if landmark.landmark in HEADER_LANDMARKS
        and (title is None or landmark.mid_y > title.mid_y)
    ]
    for landmark in _header_row(candidates):
        positions.setdefault(landmark.landmark, landmark.mid_x)
        header_ys.append(landmark.mid_y)

    header_y = sum(header_ys) / len(header_ys) if header_ys else None
    rate_x = positions.get(Landmark.RATE_HEADER)
    rate_inferred = False
    if rate_x is None:
        known = [
            positions[kind]
            for kind in (Landmark.TIME_HEADER, Landmark.METERS_HEADER, Landmark.SPLIT_HEADER)
            if kind in positions
        ]
        rate_x = min(max(known) + RATE_ANCHOR_OFFSET, RATE_ANCHOR_CEILING) if known else RATE_ANCHOR_DEFAULT
        rate_inferred = True

    anchors = ColumnAnchors(
        time_x=positions.get(Landmark.TIME_HEADER),
        meters_x=positions.get(Landmark.METERS_HEADER),
        split_x=positions.get(Landmark.SPLIT_HEADER),
        rate_x=rate_x,
        header_y=header_y,
        rate_inferred=rate_inferred,
    )
    trace.append(
        "[anchor] columns "
        + " ".join(
            f"{name}={_fmt(value)}"
            for name, value in (
                ("time", anchors.time_x),
                ("meters", anchors.meters_x),
                ("split", anchors.split_x),
                ("rate", anchors.rate_x),
                ("header_y", anchors.header_y),
            )
        )
        + (" (rate inferred)" if rate_inferred else "")
    )
    return anchors


def _fmt(value: Optional[float]) -> str:
    return "none" if value is None else f"{value:.2f}"
