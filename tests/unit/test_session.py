from ergscan.core.models import VerdictKind
from ergscan.core.session import ScanSession


def test_clean_capture_ready_on_first_attempt(interval_capture) -> None:
    session = ScanSession()
    step = session.add_capture(interval_capture)
    assert step.verdict.kind is VerdictKind.READY
    assert step.attempt == 1
    assert step.progress == 1.0
    assert step.validation is not None and step.validation.ok
    assert not step.needs_review
    assert not step.manual_entry
    assert session.trace[0] == "screen 1 capture 1"


def test_partial_captures_accumulate(interval_capture) -> None:
    without_rate = [item for item in interval_capture if item.text != "19"]
    without_summary_meters = [item for item in interval_capture if item.text not in {"15004"}]
    session = ScanSession()
    first = session.add_capture(without_rate)
    assert first.verdict.kind is VerdictKind.NOT_READY
    second = session.add_capture(without_summary_meters)
    assert second.verdict.kind is VerdictKind.READY
    assert second.table.averages.text("meters") == "15004"
    assert second.table.averages.text("stroke_rate") == "19"


def test_manual_entry_after_attempt_cap() -> None:
    session = ScanSession(max_attempts=2)
    assert not session.add_capture([]).manual_entry
    step = session.add_capture([])
    assert step.manual_entry
    assert step.verdict.kind is VerdictKind.NOT_READY


def test_failed_validation_routes_to_review(interval_capture, make_fragment) -> None:
    fragments = [item for item in interval_capture if item.text != "2:00.2"]
    fragments.append(make_fragment("2:30.2", 0.60, 0.62))
    step = ScanSession().add_capture(fragments)
    assert step.verdict.kind is VerdictKind.READY
    assert step.needs_review
    assert step.validation.issues[0].row_index == 2


def test_continue_to_next_screen_merges_rows(make_fragment, make_header_row, make_data_row) -> None:
    def screen(rows):
        fragments = [
            make_fragment("View Detail", 0.5, 0.05, width=0.3),
            make_fragment("6000m", 0.3, 0.12),
            *make_header_row(),
            *make_data_row(["21:36.0", "6000", "1:48.0", "28"], 0.36),
        ]
        for index, values in enumerate(rows):
            fragments.extend(make_data_row(values, 0.46 + 0.08 * index))
        return fragments

    session = ScanSession()
    first = session.add_capture(
        screen([["1:48.0", "500", "1:48.0", "28"], ["1:48.0", "1000", "1:48.0", "28"]])
    )
    assert first.verdict.kind is VerdictKind.INCOMPLETE_MEETS_CRITERIA
    assert first.verdict.is_first_screen

    session.continue_to_next_screen()
    second = session.add_capture(
        screen([["1:48.0", "1000", "1:48.0", "28"], ["1:48.0", "6000", "1:48.0", "28"]])
    )
    assert second.screen == 2
    assert second.attempt == 1
    assert [row.text("meters") for row in second.table.rows] == ["500", "1000", "6000"]
    assert second.verdict.kind is VerdictKind.READY
    assert not second.verdict.is_first_screen


def test_retake_discards_everything(interval_capture) -> None:
    session = ScanSession()
    session.add_capture(interval_capture)
    session.continue_to_next_screen()
    session.retake()
    assert session.accumulated is None
    assert session.previous_screen is None
    assert session.attempt == 0
    assert session.screen == 1
    assert session.trace == []
