"""Spatial grouping of recognition fragments into display rows."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ergscan.core.constants import DEFAULT_ROW_TOLERANCE
from ergscan.core.models import RecognitionFragment

Row = List[RecognitionFragment]


def group_into_rows(
    fragments: Iterable[RecognitionFragment],
    tolerance: float = DEFAULT_ROW_TOLERANCE,
) -> List[Row]:
    """Cluster fragments top-to-bottom by vertical midpoint, then order each row left-to-right."""
    ordered = sorted(fragments, key=lambda fragment: (fragment.box.mid_y, fragment.box.x, fragment.text))
    rows: List[Row] = []
    for fragment in ordered:
        if rows and abs(fragment.box.mid_y - rows[-1][0].box.mid_y) < tolerance:
            rows[-1].append(fragment)
        else:
            rows.append([fragment])
    return [sorted(row, key=lambda fragment: (fragment.box.x, fragment.text)) for row in rows]


def row_mid_y(row: Sequence[RecognitionFragment]) -> float:
    return sum(fragment.box.mid_y for fragment in row) / len(row)


def row_mid_x(row: Sequence[RecognitionFragment]) -> float:
    return sum(fragment.box.mid_x for fragment in row) / len(row)


def row_text(row: Sequence[RecognitionFragment], separator: str = " ") -> str:
    return separator.join(fragment.text.strip() for fragment in row)
