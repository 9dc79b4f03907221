"""Scanning session: the capture loop around the pure parsing core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ergscan.core.assemble import parse_table
from ergscan.core.completeness import evaluate_completeness, field_progress
from ergscan.core.config import ParserSettings
from ergscan.core.constants import ESTIMATED_ROW_FIELDS, MAX_CAPTURE_ATTEMPTS
from ergscan.core.merge import merge_screens, merge_tables
from ergscan.core.models import (
    CompletenessVerdict,
    ParseResult,
    RecognitionFragment,
    RecognizedTable,
    ValidationReport,
    VerdictKind,
)
from ergscan.core.validation import validate_table


@dataclass
class ScanStep:
    """Outcome of one capture: the parse, the accumulated table and the verdict."""

    parse: ParseResult
    table: RecognizedTable
    verdict: CompletenessVerdict
    progress: float
    attempt: int
    screen: int = 1
    manual_entry: bool = False
    validation: Optional[ValidationReport] = None

    @property
    def needs_review(self) -> bool:
        return self.validation is not None and not self.validation.ok


@dataclass
class ScanSession:
    settings: ParserSettings = field(default_factory=ParserSettings)
    max_attempts: int = MAX_CAPTURE_ATTEMPTS
    estimated_row_fields: int = ESTIMATED_ROW_FIELDS
    accumulated: Optional[RecognizedTable] = None
    previous_screen: Optional[RecognizedTable] = None
    attempt: int = 0
    screen: int = 1
    trace: List[str] = field(default_factory=list)

    @property
    def is_first_screen(self) -> bool:
        return self.previous_screen is None

    def current_table(self) -> Optional[RecognizedTable]:
        """The accumulation combined with any carried screen."""
        if self.accumulated is None:
            return self.previous_screen
        if self.previous_screen is None:
            return self.accumulated
        return merge_screens(self.previous_screen, self.accumulated)

    def add_capture(self, fragments: Iterable[RecognitionFragment]) -> ScanStep:
        self.attempt += 1
        result = parse_table(fragments, self.settings)
        self.trace.append(f"screen {self.screen} capture {self.attempt}")
        self.trace.extend(result.trace)

        self.accumulated = merge_tables(self.accumulated, result.table)
        table = self.current_table()
        verdict = evaluate_completeness(table, is_first_screen=self.is_first_screen)
        validation = validate_table(table) if verdict.kind is VerdictKind.READY else None
        manual_entry = verdict.kind is VerdictKind.NOT_READY and self.attempt >= self.max_attempts
        return ScanStep(
            parse=result,
            table=table,
            verdict=verdict,
            progress=field_progress(table, self.estimated_row_fields),
            attempt=self.attempt,
            screen=self.screen,
            manual_entry=manual_entry,
            validation=validation,
        )

    def continue_to_next_screen(self) -> None:
        """Carry the current table forward and start a fresh accumulation."""
        self.previous_screen = self.current_table()
        self.accumulated = None
        self.attempt = 0
        self.screen += 1

    def retake(self) -> None:
        self.accumulated = None
        self.previous_screen = None
        self.attempt = 0
        self.screen = 1
        self.trace = []
