"""Validation command for saved tables."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from ergscan.commands.common import get_state, print_json_payload
from ergscan.core.validation import validate_table
from ergscan.exporters.json_export import load_table, report_to_dict
from ergscan.utils.parsing import InputError


def validate_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Table JSON written by parse or scan"),
) -> None:
    """Run split accuracy and split consistency checks; exit 1 on issues."""
    state = get_state(ctx)
    try:
        table = load_table(file)
    except InputError as exc:
        raise typer.BadParameter(str(exc)) from exc

    report = validate_table(table)
    if state.json_output:
        print_json_payload(state, report_to_dict(report))
    elif report.ok:
        state.console.print(f"[green]OK[/green]: {len(table.rows)} row(s) checked")
    elif state.plain_output:
        for issue in report.issues:
            typer.echo(f"row {issue.row_index + 1}\t{issue.check}\t{issue.message}")
    else:
        grid = Table(title="Validation issues")
        grid.add_column("Row", justify="right")
        grid.add_column("Check")
        grid.add_column("Message")
        for issue in report.issues:
            grid.add_row(str(issue.row_index + 1), issue.check, issue.message)
        state.console.print(grid)

    if not report.ok:
        raise typer.Exit(code=1)
