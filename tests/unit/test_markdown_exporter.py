from pathlib import Path

from ergscan.core.assemble import parse_table
from ergscan.exporters.markdown import table_to_markdown, write_table_markdown


def test_table_to_markdown_contains_frontmatter_and_rows(interval_capture) -> None:
    md = table_to_markdown(parse_table(interval_capture).table)
    assert md.startswith("---\n")
    assert 'title: "3x20:00/1:00r"' in md
    assert 'date: "2025-12-20"' in md
    assert "total_distance: 15004" in md
    assert "- **Type:** Fixed intervals" in md
    assert "- **Reps:** 3" in md
    assert "| Avg | 1:03:45.0 | 15004 | 1:59.9 | 19 | - |" in md
    assert "| 3 | 20:00.0 | 4994 | 2:00.2 | 19 | - |" in md


def test_markdown_for_empty_table() -> None:
    from ergscan.core.models import RecognizedTable

    md = table_to_markdown(RecognizedTable())
    assert "# Unknown workout" in md
    assert "total_distance: null" in md
    assert "| Avg | - | - | - | - | - |" in md


def test_write_table_markdown(tmp_path: Path, interval_capture) -> None:
    out = write_table_markdown(tmp_path / "nested" / "workout.md", parse_table(interval_capture).table)
    assert out.exists()
    assert "## Splits" in out.read_text()
