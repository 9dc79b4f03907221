"""Shared command helpers."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from ergscan.core.config import scanning_policy_from_config
from ergscan.core.models import RecognitionFragment, RecognizedTable
from ergscan.core.session import ScanSession, ScanStep
from ergscan.core.state import CLIState
from ergscan.exporters.json_export import report_to_dict, table_to_dict
from ergscan.utils.formatting import (
    cell_text,
    format_category,
    format_distance,
    format_progress,
    format_verdict,
)
from ergscan.utils.parsing import InputError, load_fragments_input

TABLE_COLUMNS = (
    ("Time", "time"),
    ("Meters", "meters"),
    ("/500m", "split"),
    ("s/m", "stroke_rate"),
    ("HR", "heart_rate"),
)


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def read_fragments(path: Path) -> List[RecognitionFragment]:
    """Load fragments from a file, or stdin when the path is "-"."""
    try:
        if str(path) == "-":
            return load_fragments_input(None, read_stdin=True, stdin_text=sys.stdin.read())
        return load_fragments_input(path)
    except InputError as exc:
        raise typer.BadParameter(str(exc)) from exc


def new_session(state: CLIState) -> ScanSession:
    policy = scanning_policy_from_config(state.config)
    return ScanSession(
        settings=state.parser_settings,
        max_attempts=policy["max_attempts"],
        estimated_row_fields=policy["estimated_row_fields"],
    )


def step_payload(step: ScanStep) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "table": table_to_dict(step.table),
        "verdict": step.verdict.kind.value,
        "reason": step.verdict.reason,
        "is_first_screen": step.verdict.is_first_screen,
        "progress": round(step.progress, 4),
        "attempt": step.attempt,
        "screen": step.screen,
        "manual_entry": step.manual_entry,
        "anchor_found": step.parse.anchor_found,
    }
    if step.validation is not None:
        payload["validation"] = report_to_dict(step.validation)
    return payload


def render_table(table: RecognizedTable) -> Table:
    """Build a rich table with the averages row first."""
    title = table.workout_type or "Unknown workout"
    grid = Table(title=title)
    grid.add_column("#", justify="right")
    for label, _ in TABLE_COLUMNS:
        grid.add_column(label, justify="right")
    grid.add_row("Avg", *[cell_text(table.averages, name) for _, name in TABLE_COLUMNS])
    for index, row in enumerate(table.rows, 1):
        grid.add_row(str(index), *[cell_text(row, name) for _, name in TABLE_COLUMNS])
    return grid


def print_step(state: CLIState, step: ScanStep, trace: Optional[List[str]] = None) -> None:
    """Human-readable step summary; the trace is shown only in verbose mode."""
    table = step.table
    console = state.console
    if state.verbose:
        for line in trace if trace is not None else step.parse.trace:
            console.print(line, markup=False, highlight=False)

    if not step.parse.anchor_found and table.is_empty:
        console.print("[yellow]Screen title not found; nothing parsed.[/yellow]")
    elif state.plain_output:
        typer.echo(f"Workout: {table.workout_type or 'N/A'}")
        typer.echo(f"Type: {format_category(table.category)}")
        for label, row in [("Avg", table.averages)] + [
            (str(index), row) for index, row in enumerate(table.rows, 1)
        ]:
            typer.echo(f"{label}: " + " ".join(cell_text(row, name) for _, name in TABLE_COLUMNS))
    else:
        console.print(render_table(table))
        console.print(
            f"Type: {format_category(table.category)} | Date: "
            f"{table.date.isoformat() if table.date else 'N/A'} | Total time: "
            f"{table.total_time or 'N/A'} | Distance: {format_distance(table.total_distance)}"
        )

    console.print(
        f"Verdict: {format_verdict(step.verdict.kind)} | Progress: {format_progress(step.progress)}"
        f" | Attempt {step.attempt}, screen {step.screen}"
    )
    if step.verdict.reason:
        console.print(f"Reason: {step.verdict.reason}", markup=False)
    if step.manual_entry:
        console.print("[yellow]Attempt limit reached; switch to manual entry.[/yellow]")
    if step.needs_review:
        console.print("[yellow]Validation failed; review the values manually.[/yellow]")
        for issue in step.validation.issues:
            console.print(f"  row {issue.row_index + 1}: {issue.check}: {issue.message}", markup=False)
