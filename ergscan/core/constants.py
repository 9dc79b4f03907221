"""Static constants and vocabularies for the monitor parser."""

from __future__ import annotations

from ergscan.core.models import Landmark

# Landmark targets, matched with a bounded edit distance.
LANDMARK_TARGETS = [
    (Landmark.SCREEN_TITLE, ["view detail"]),
    (Landmark.TOTAL_TIME, ["total time"]),
    (Landmark.TIME_HEADER, ["time"]),
    (Landmark.METERS_HEADER, ["meters", "meter"]),
    (Landmark.SPLIT_HEADER, ["/500m", "500m"]),
    (Landmark.RATE_HEADER, ["s/m", "spm"]),
]

# Multi-word landmarks are tried on adjacent fragment pairs before single fragments.
MULTI_WORD_LANDMARKS = {Landmark.SCREEN_TITLE, Landmark.TOTAL_TIME}

JUNK_LABELS = {
    "total",
    "total time",
    "avg",
    "average",
    "rest",
    "time",
    "meter",
    "meters",
    "/500m",
    "500m",
    "s/m",
    "spm",
    "split",
    "rate",
    "pace",
    "view",
    "detail",
    "view detail",
    "hr",
    "bpm",
}

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Context-gated OCR misreads: letter -> digit.
DIGIT_MISREADS = {"O": "0", "o": "0", "l": "1", "S": "5", "B": "8"}

# Non-Latin look-alikes seen in descriptor text.
LOOKALIKE_CHARS = {
    "х": "x",  # Cyrillic ha
    "Х": "x",  # Cyrillic capital ha
    "×": "x",  # multiplication sign
    "χ": "x",  # Greek chi
    "г": "r",  # Cyrillic ghe
    "о": "o",  # Cyrillic o
    "О": "O",  # Cyrillic capital o
    "ο": "o",  # Greek omicron
    "м": "m",  # Cyrillic em
    "М": "m",  # Cyrillic capital em
    "в": "v",  # Cyrillic ve
    "ν": "v",  # Greek nu
    "ѕ": "s",  # Cyrillic dze
}

AMBIGUOUS_LEADING_CHARS = "EeJjBb?Зз"

VARIABLE_PREFIX = "v"

RATE_RANGE = (10, 60)
HEART_RATE_RANGE = (40, 220)

DEFAULT_ROW_TOLERANCE = 0.03
DEFAULT_COLUMN_TOLERANCE = 0.05
DEFAULT_HEADER_MARGIN = 0.02
DEFAULT_LANDMARK_MAX_DISTANCE = 2
DEFAULT_INTERVAL_RATIO = 1.5

# Rate column fallback when its header is unreadable.
RATE_ANCHOR_OFFSET = 0.15
RATE_ANCHOR_CEILING = 0.90
RATE_ANCHOR_DEFAULT = 0.75

# Fallback anchors for time/split disambiguation when headers are missing.
TIME_ANCHOR_DEFAULT = 0.2
SPLIT_ANCHOR_DEFAULT = 0.6

# Metadata rows scanned after the screen title.
METADATA_ROW_LIMIT = 3

MAX_CAPTURE_ATTEMPTS = 4
ESTIMATED_ROW_FIELDS = 20
LAST_ROW_RATE_MIN_METERS = 100

CATEGORY_LABELS = {
    "single": "Single piece",
    "fixed_interval": "Fixed intervals",
    "variable_interval": "Variable intervals",
}
