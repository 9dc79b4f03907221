"""Context-aware cleanup of recognizer text."""

from __future__ import annotations

import re

from ergscan.core.constants import (
    AMBIGUOUS_LEADING_CHARS,
    DIGIT_MISREADS,
    LOOKALIKE_CHARS,
    VARIABLE_PREFIX,
)

_NUMERIC_CONTEXT = set("0123456789:./")
_SPACE_AROUND_POINT = re.compile(r"(?<=\d)\s*\.\s*(?=\d)")

_AMBIGUOUS_LEADING = re.compile(r"^[" + re.escape(AMBIGUOUS_LEADING_CHARS) + r"]x(?=\d)")
_TRAILING_ELLIPSIS = re.compile(r"(?:\.{2,}|…)\s*\d*$")
_MISSING_SLASH = re.compile(r"^([^\d\s]*\d*x(?:\d{1,2}:\d{2}|\d+m))(\d)")
_SPACED_SLASH = re.compile(r"\s*/\s*")
_VARIABLE_PREFIX = re.compile(r"^[^\dx/\s:.]+(?=\d)")


def _is_numeric_context(char: str) -> bool:
    return char in _NUMERIC_CONTEXT


def _substitute_misreads(text: str) -> str:
    chars = list(text)
    # Repeat until stable so chained misreads ("OO5") settle in one call.
    changed = True
    while changed:
        changed = False
        for index, char in enumerate(chars):
            digit = DIGIT_MISREADS.get(char)
            if digit is None:
                continue
            before = chars[index - 1] if index > 0 else ""
            after = chars[index + 1] if index + 1 < len(chars) else ""
            if _is_numeric_context(before) or _is_numeric_context(after):
                chars[index] = digit
                changed = True
    return "".join(chars)


def normalize_text(text: str) -> str:
    """Normalize one fragment's text; idempotent."""
    cleaned = text.strip().replace(";", ":")
    cleaned = _substitute_misreads(cleaned)
    cleaned = _SPACE_AROUND_POINT.sub(".", cleaned)
    return cleaned


def _normalize_descriptor_body(text: str) -> str:
    cleaned = normalize_text(text)
    cleaned = cleaned.replace(",", "/")
    cleaned = _SPACED_SLASH.sub("/", cleaned)
    cleaned = _TRAILING_ELLIPSIS.sub("", cleaned)
    cleaned = re.sub(r"\s+", "", cleaned)
    return _MISSING_SLASH.sub(r"\1/\2", cleaned)


def normalize_descriptor(text: str) -> str:
    """Stricter normalization for workout descriptor candidates.

    Maps look-alike glyphs to Latin, repairs a misread leading rep count,
    turns commas into slashes, restores a dropped slash after the work
    portion, drops a trailing "...N" suffix and collapses any non-digit
    prefix (variable intervals) to a single marker.
    """
    cleaned = "".join(LOOKALIKE_CHARS.get(char, char) for char in text.strip())
    cleaned = cleaned.replace("X", "x")
    cleaned = _AMBIGUOUS_LEADING.sub("3x", cleaned)

    # The prefix comes off before misread repair, which would turn "S40" into "540".
    prefix = _VARIABLE_PREFIX.match(cleaned)
    if prefix is not None:
        body = _normalize_descriptor_body(cleaned[prefix.end():])
        if "/" in body:
            return VARIABLE_PREFIX + body

    return _VARIABLE_PREFIX.sub(VARIABLE_PREFIX, _normalize_descriptor_body(cleaned))
