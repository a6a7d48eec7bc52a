from __future__ import annotations

from datetime import datetime, timezone

from domain.services import FormTracker
from test.mocks import FixedClock


def _tracker() -> FormTracker:
    return FormTracker(clock=FixedClock(datetime(2025, 6, 1, tzinfo=timezone.utc)))


def test_selector_is_filled_only_after_success() -> None:
    tracker = _tracker()
    tracker.mark_attempted("#email")
    assert tracker.was_attempted("#email")
    assert not tracker.is_filled("#email")

    tracker.record_fill("#email", "Email", "ada@example.com", "basic")
    assert tracker.is_filled("#email")
    assert tracker.filled_count == 1


def test_second_success_for_same_selector_is_ignored() -> None:
    tracker = _tracker()
    tracker.record_fill("#email", "Email", "first@example.com", "basic")
    tracker.record_fill("#email", "Email", "second@example.com", "agent")

    assert tracker.filled_count == 1
    assert [r.value for r in tracker.records] == ["first@example.com"]
    assert tracker.filled_fields()[0].module == "basic"


def test_failure_then_success_counts_as_filled_only() -> None:
    tracker = _tracker()
    tracker.record_failure("#degree", "Degree", "MS", "education", "No option matching 'MS'")
    tracker.record_fill("#degree", "Degree", "Master's", "ai")

    assert tracker.failed_count == 0
    assert tracker.filled_count == 1
    assert len(tracker.records) == 2


def test_repeated_failures_report_latest_reason() -> None:
    tracker = _tracker()
    tracker.record_failure("#city", "City", "SF", "questions", "Element not visible")
    tracker.record_failure("#city", "City", "SF", "agent", "Timed out after 10s")

    failed = tracker.failed_fields()
    assert len(failed) == 1
    assert failed[0].reason == "Timed out after 10s"


def test_summary_lines() -> None:
    tracker = _tracker()
    tracker.record_fill("#first_name", "First Name", "Ada", "basic")
    tracker.record_failure("#phone", "Phone", "+1", "basic", "Element not visible")

    lines = tracker.summary_lines()
    assert lines[0] == "Filled 1 field(s), 1 failed"
    assert "  [ok]   First Name: Ada (basic)" in lines
    assert "  [fail] Phone: Element not visible (basic)" in lines


def test_long_values_are_truncated_in_records() -> None:
    tracker = _tracker()
    tracker.record_fill("#why", "Why us", "x" * 80, "questions")
    value = tracker.records[0].value
    assert len(value) == 50
    assert value.endswith("...")


def test_reset_clears_everything() -> None:
    tracker = _tracker()
    tracker.record_fill("#email", "Email", "ada@example.com", "basic")
    tracker.record_failure("#phone", "Phone", "+1", "basic", "boom")
    tracker.reset()

    assert tracker.records == ()
    assert not tracker.is_filled("#email")
    assert not tracker.was_attempted("#phone")
    assert tracker.summary_lines() == ["Filled 0 field(s), 0 failed"]
