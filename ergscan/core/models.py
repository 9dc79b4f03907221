"""Data models shared by the parser, merge engine and commands."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date as Date
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class WorkoutCategory(str, Enum):
    """Shape of a workout as shown on the monitor."""

    SINGLE = "single"
    FIXED_INTERVAL = "fixed_interval"
    VARIABLE_INTERVAL = "variable_interval"

    @property
    def is_interval(self) -> bool:
        return self is not WorkoutCategory.SINGLE


class Landmark(str, Enum):
    """Structural labels located by fuzzy matching."""

    SCREEN_TITLE = "screen_title"
    TOTAL_TIME = "total_time"
    TIME_HEADER = "time_header"
    METERS_HEADER = "meters_header"
    SPLIT_HEADER = "split_header"
    RATE_HEADER = "rate_header"


HEADER_LANDMARKS = (
    Landmark.TIME_HEADER,
    Landmark.METERS_HEADER,
    Landmark.SPLIT_HEADER,
    Landmark.RATE_HEADER,
)

ROW_FIELDS = ("time", "meters", "split", "stroke_rate", "heart_rate")


@dataclass(frozen=True)
class Box:
    """Normalized, y-down bounding box."""

    x: float
    y: float
    w: float
    h: float

    @property
    def mid_x(self) -> float:
        return self.x + self.w / 2.0

    @property
    def mid_y(self) -> float:
        return self.y + self.h / 2.0

    @property
    def max_x(self) -> float:
        return self.x + self.w

    @property
    def max_y(self) -> float:
        return self.y + self.h

    def union(self, other: "Box") -> "Box":
        min_x = min(self.x, other.x)
        min_y = min(self.y, other.y)
        max_x = max(self.max_x, other.max_x)
        max_y = max(self.max_y, other.max_y)
        return Box(x=min_x, y=min_y, w=max_x - min_x, h=max_y - min_y)


@dataclass(frozen=True)
class RecognitionFragment:
    """One text-recognition result, as supplied by the recognizer."""

    text: str
    confidence: float
    box: Box


@dataclass(frozen=True)
class DetectedLandmark:
    landmark: Landmark
    mid_x: float
    mid_y: float


@dataclass(frozen=True)
class ColumnAnchors:
    """Per-attempt horizontal column positions and header row height."""

    time_x: Optional[float] = None
    meters_x: Optional[float] = None
    split_x: Optional[float] = None
    rate_x: Optional[float] = None
    header_y: Optional[float] = None
    rate_inferred: bool = False

    def columns(self) -> Iterator[Tuple[str, float]]:
        for name, value in (
            ("time", self.time_x),
            ("meters", self.meters_x),
            ("split", self.split_x),
            ("stroke_rate", self.rate_x),
        ):
            if value is not None:
                yield name, value


@dataclass(frozen=True)
class TableCell:
    """A validated field value with the confidence and box it came from."""

    text: str
    confidence: float
    box: Optional[Box] = None


@dataclass(frozen=True)
class TableRow:
    time: Optional[TableCell] = None
    meters: Optional[TableCell] = None
    split: Optional[TableCell] = None
    stroke_rate: Optional[TableCell] = None
    heart_rate: Optional[TableCell] = None
    box: Optional[Box] = None

    def cells(self) -> Iterator[Tuple[str, TableCell]]:
        for name in ROW_FIELDS:
            cell = getattr(self, name)
            if cell is not None:
                yield name, cell

    @property
    def populated_count(self) -> int:
        return sum(1 for _ in self.cells())

    def text(self, name: str) -> Optional[str]:
        cell = getattr(self, name)
        return cell.text if cell is not None else None

    def meters_value(self) -> Optional[int]:
        raw = self.text("meters")
        if not raw:
            return None
        try:
            return int(raw.replace(",", ""))
        except ValueError:
            return None


@dataclass(frozen=True)
class WorkoutDescriptor:
    """Parsed breakdown of the workout descriptor line."""

    text: str
    category: WorkoutCategory
    reps: Optional[int] = None
    work_per_rep: Optional[str] = None
    rest_per_rep: Optional[str] = None

    @property
    def is_variable(self) -> bool:
        return self.category is WorkoutCategory.VARIABLE_INTERVAL


@dataclass(frozen=True)
class WorkoutClassification:
    """Classification metadata for a parsed table."""

    category: Optional[WorkoutCategory]
    method: str = "descriptor"
    confidence: float = 0.9
    reasoning: Optional[str] = None


@dataclass(frozen=True)
class RecognizedTable:
    workout_type: Optional[str] = None
    category: Optional[WorkoutCategory] = None
    category_source: Optional[str] = None
    date: Optional[Date] = None
    total_time: Optional[str] = None
    total_distance: Optional[int] = None
    reps: Optional[int] = None
    work_per_rep: Optional[str] = None
    rest_per_rep: Optional[str] = None
    is_variable: Optional[bool] = None
    averages: Optional[TableRow] = None
    rows: Tuple[TableRow, ...] = ()
    average_confidence: float = 0.0

    def with_changes(self, **changes) -> "RecognizedTable":
        return replace(self, **changes)

    @property
    def is_empty(self) -> bool:
        return (
            self.workout_type is None
            and self.category is None
            and self.date is None
            and self.total_time is None
            and self.averages is None
            and not self.rows
        )


@dataclass
class ParseResult:
    """Output of one parse attempt: the table and its ordered trace."""

    table: RecognizedTable
    trace: List[str] = field(default_factory=list)
    anchor_found: bool = True


class VerdictKind(str, Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    INCOMPLETE_MEETS_CRITERIA = "incomplete_meets_criteria"


@dataclass(frozen=True)
class CompletenessVerdict:
    kind: VerdictKind
    table: Optional[RecognizedTable] = None
    is_first_screen: bool = True
    reason: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.kind is VerdictKind.READY


@dataclass(frozen=True)
class ValidationIssue:
    check: str
    row_index: int
    message: str


@dataclass(frozen=True)
class ValidationReport:
    issues: Tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.issues
