from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import pytest
import typer
from rich.console import Console

from ergscan.commands.common import get_state, new_session, read_fragments, render_table, step_payload
from ergscan.core.state import CLIState


@dataclass
class FakeContext:
    obj: Any


def _state(config: Dict[str, Any] | None = None) -> CLIState:
    return CLIState(
        json_output=False,
        plain_output=True,
        verbose=False,
        quiet=False,
        config_path=Path("/tmp/config.toml"),
        config=config or {},
        console=Console(record=True),
    )


def test_get_state_returns_cli_state() -> None:
    state = _state()
    assert get_state(FakeContext(obj=state)) is state


def test_get_state_raises_on_invalid_obj() -> None:
    with pytest.raises(typer.Exit):
        get_state(FakeContext(obj={"not": "state"}))


def test_new_session_uses_configured_policy() -> None:
    session = new_session(
        _state({"parser": {"row_tolerance": 0.04}, "scanning": {"max_attempts": 2, "estimated_row_fields": 10}})
    )
    assert session.max_attempts == 2
    assert session.estimated_row_fields == 10
    assert session.settings.row_tolerance == 0.04


def test_step_payload_includes_validation_when_ready(interval_capture) -> None:
    step = new_session(_state()).add_capture(interval_capture)
    payload = step_payload(step)
    assert payload["verdict"] == "ready"
    assert payload["anchor_found"] is True
    assert payload["validation"] == {"ok": True, "issues": []}
    assert payload["table"]["reps"] == 3


def test_step_payload_without_anchor() -> None:
    payload = step_payload(new_session(_state()).add_capture([]))
    assert payload["verdict"] == "not_ready"
    assert payload["anchor_found"] is False
    assert "validation" not in payload


def test_read_fragments_from_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO('[{"text": "19", "confidence": 0.9, "box": [0.1, 0.2, 0.1, 0.03]}]'))
    assert [item.text for item in read_fragments(Path("-"))] == ["19"]


def test_read_fragments_missing_file_is_bad_parameter(tmp_path: Path) -> None:
    with pytest.raises(typer.BadParameter):
        read_fragments(tmp_path / "missing.json")


def test_render_table_lists_averages_first(interval_capture) -> None:
    step = new_session(_state()).add_capture(interval_capture)
    grid = render_table(step.table)
    assert grid.row_count == 4
    assert grid.title == "3x20:00/1:00r"
