"""
Unit tests for transition detection.

An identifier is newly broken only when it goes from healthy or unknown to
broken; staying broken does not count again.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest

from doi_monitor.domain import ProbeResult, StatusRecord
from doi_monitor.status import merge_status
from doi_monitor.transitions import detect_newly_broken
from doi_monitor.worker import skipped_result

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _result(identifier: str, healthy: bool, at: datetime = NOW) -> ProbeResult:
    return ProbeResult(
        identifier=identifier,
        healthy=healthy,
        http_status=200 if healthy else None,
        final_url=None,
        error=None if healthy else "connection refused",
        checked_at=at,
    )


def _record(healthy: Optional[bool]) -> StatusRecord:
    return StatusRecord(
        healthy=healthy,
        http_status=None,
        error=None,
        last_checked_at=NOW - timedelta(days=1),
        first_checked_at=NOW - timedelta(days=7),
    )


@pytest.mark.parametrize(
    "prior, current_healthy, expected",
    [
        (None, False, True),
        (_record(None), False, True),
        (_record(True), False, True),
        (_record(False), False, False),
        (None, True, False),
        (_record(True), True, False),
        (_record(False), True, False),
    ],
    ids=[
        "unknown-to-broken",
        "never-checked-to-broken",
        "healthy-to-broken",
        "broken-to-broken",
        "unknown-to-healthy",
        "healthy-to-healthy",
        "broken-to-healthy",
    ],
)
def test_newly_broken_follows_transition_semantics(prior, current_healthy, expected) -> None:
    """
    Tests each state-machine transition against the newly broken rule.
    """
    # Arrange
    results = [_result("10.1/a", current_healthy)]

    # Act
    report = detect_newly_broken(results, {"10.1/a": prior})

    # Assert
    assert ("10.1/a" in report.newly_broken) is expected


def test_missing_prior_entry_counts_as_never_checked() -> None:
    report = detect_newly_broken([_result("10.1/a", False)], {})

    assert report.newly_broken == ("10.1/a",)


def test_report_should_count_totals_and_list_recoveries() -> None:
    """
    Tests the aggregate counts and the recovered list.
    """
    # Arrange
    results = [
        _result("10.1/a", True),
        _result("10.1/b", False),
        _result("10.1/c", True),
        _result("10.1/d", False),
    ]
    prior: Dict[str, Optional[StatusRecord]] = {
        "10.1/a": _record(False),
        "10.1/b": _record(False),
        "10.1/c": _record(True),
        "10.1/d": _record(True),
    }

    # Act
    report = detect_newly_broken(results, prior)

    # Assert
    assert report.total == 4
    assert report.healthy == 2
    assert report.broken == 2
    assert report.newly_broken == ("10.1/d",)
    assert report.recovered == ("10.1/a",)


def test_newly_broken_keeps_result_order_without_duplicates() -> None:
    results = [_result("10.1/b", False), _result("10.1/a", False), _result("10.1/b", False)]

    report = detect_newly_broken(results, {})

    assert report.newly_broken == ("10.1/b", "10.1/a")


def test_skipped_results_are_ignored() -> None:
    """
    Tests that an identifier skipped for lack of time is neither broken nor counted.
    """
    # Arrange
    results = [_result("10.1/a", True), skipped_result("10.1/b")]

    # Act
    report = detect_newly_broken(results, {"10.1/b": _record(True)})

    # Assert
    assert report.newly_broken == ()
    assert report.total == 1
    assert report.broken == 0


def test_identifier_failing_two_cycles_in_a_row_is_newly_broken_only_once() -> None:
    """
    Tests two consecutive failing cycles with the status merged in between.
    """
    # Arrange
    identifier = "10.1/a"
    first = _result(identifier, False, NOW)
    second = _result(identifier, False, NOW + timedelta(days=1))

    # Act
    first_report = detect_newly_broken([first], {identifier: None})
    record = merge_status(None, first)
    second_report = detect_newly_broken([second], {identifier: record})

    # Assert
    assert first_report.newly_broken == (identifier,)
    assert second_report.newly_broken == ()
