"""Single-capture parse command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from ergscan.commands.common import (
    get_state,
    new_session,
    print_json_payload,
    print_step,
    read_fragments,
    step_payload,
)
from ergscan.exporters.json_export import write_json


def parse_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Fragments file (JSON/YAML), or - for stdin"),
    output_file: Optional[Path] = typer.Option(None, help="Write the parsed table as JSON"),
) -> None:
    """Parse one capture of the monitor and report the verdict."""
    state = get_state(ctx)
    fragments = read_fragments(file)

    step = new_session(state).add_capture(fragments)
    payload = step_payload(step)
    if state.verbose:
        payload["trace"] = step.parse.trace

    if output_file:
        write_json(output_file, payload)

    if state.json_output:
        print_json_payload(state, payload)
        return
    print_step(state, step)
    if output_file:
        state.console.print(f"Saved to {output_file}", markup=False)
