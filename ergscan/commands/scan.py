"""Multi-attempt, multi-screen scan command."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from ergscan.commands.common import (
    get_state,
    new_session,
    print_json_payload,
    print_step,
    read_fragments,
    step_payload,
)
from ergscan.core.config import resolve_output_dir
from ergscan.core.models import VerdictKind
from ergscan.core.session import ScanSession, ScanStep
from ergscan.exporters.json_export import write_json
from ergscan.exporters.markdown import table_to_markdown, write_table_markdown
from ergscan.utils.text import table_filename


def _run_screen(session: ScanSession, files: List[Path]) -> Optional[ScanStep]:
    """Feed captures until the table is lockable or the attempt cap is hit."""
    step: Optional[ScanStep] = None
    for path in files:
        step = session.add_capture(read_fragments(path))
        if step.verdict.kind is not VerdictKind.NOT_READY or step.manual_entry:
            break
    return step


def scan_command(
    ctx: typer.Context,
    files: List[Path] = typer.Argument(..., help="Capture attempts of the first screen, in order"),
    next_screen: Optional[List[Path]] = typer.Option(
        None,
        "--next-screen",
        help="Capture attempt of the following screen (repeatable)",
    ),
    export_format: str = typer.Option("json", "--format", help="Export format: json|markdown"),
    output_file: Optional[Path] = typer.Option(None, help="Write the final table to this file"),
    save: bool = typer.Option(False, "--save", help="Save the final table to the export directory"),
    output_dir: Optional[Path] = typer.Option(None, help="Export directory used with --save"),
) -> None:
    """Accumulate several captures into one workout table."""
    state = get_state(ctx)
    if export_format not in {"json", "markdown"}:
        raise typer.BadParameter("--format must be one of: json, markdown")

    session = new_session(state)
    step = _run_screen(session, files)
    if next_screen and step is not None and not step.manual_entry:
        session.continue_to_next_screen()
        step = _run_screen(session, next_screen) or step

    if step is None:
        raise typer.BadParameter("no capture files given")

    payload = step_payload(step)
    if state.verbose:
        payload["trace"] = session.trace

    if output_file is None and save:
        extension = "md" if export_format == "markdown" else "json"
        output_file = resolve_output_dir(state.config, output_dir) / table_filename(step.table, extension)

    if output_file:
        if export_format == "markdown":
            write_table_markdown(output_file, step.table)
        else:
            write_json(output_file, payload)

    if state.json_output:
        print_json_payload(state, payload)
        return
    if export_format == "markdown" and not output_file:
        typer.echo(table_to_markdown(step.table))
        return
    print_step(state, step, trace=session.trace)
    if output_file:
        state.console.print(f"Saved to {output_file}", markup=False)
