from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tablebook.domain.common.ids import ReservationId, TableId, UserId
from tablebook.domain.reservation.entities import (
    InvalidReservationWindowError,
    Reservation,
    WindowViolation,
    clamp_minutes,
    create_reservation,
    default_end,
    overlaps,
    validate_window,
)

NOW = datetime(2025, 11, 7, 12, 0)
EVENING = datetime(2025, 11, 7, 18, 0)


def _violation(start: datetime, end: datetime) -> WindowViolation:
    with pytest.raises(InvalidReservationWindowError) as exc_info:
        validate_window(start, end, NOW)
    return exc_info.value.violation


def test_overlap_is_half_open() -> None:
    start = EVENING
    end = EVENING + timedelta(hours=2)
    assert overlaps(start, end, end, end + timedelta(hours=1)) is False
    assert overlaps(start, end, start - timedelta(hours=1), start) is False
    assert overlaps(start, end, end - timedelta(minutes=1), end + timedelta(hours=1)) is True
    assert overlaps(start, end, start + timedelta(minutes=30), end - timedelta(minutes=30)) is True
    assert overlaps(start, end, start - timedelta(hours=1), end + timedelta(hours=1)) is True


def test_clamp_minutes_defaults_and_bounds() -> None:
    assert clamp_minutes(None) == 30
    assert clamp_minutes(5) == 30
    assert clamp_minutes(-10) == 30
    assert clamp_minutes(90) == 90
    assert clamp_minutes(1000) == 300


def test_default_end_is_two_hours_after_start() -> None:
    assert default_end(EVENING) == datetime(2025, 11, 7, 20, 0)


def test_end_must_be_after_start() -> None:
    assert _violation(EVENING, EVENING) == WindowViolation.END_NOT_AFTER_START
    assert _violation(EVENING, EVENING - timedelta(hours=1)) == WindowViolation.END_NOT_AFTER_START


def test_start_in_past_is_rejected() -> None:
    past = NOW - timedelta(minutes=1)
    assert _violation(past, past + timedelta(hours=1)) == WindowViolation.START_IN_PAST


def test_start_exactly_now_is_allowed() -> None:
    validate_window(NOW, NOW + timedelta(minutes=30), NOW)


def test_duration_boundaries() -> None:
    assert _violation(EVENING, EVENING + timedelta(minutes=29)) == (
        WindowViolation.DURATION_OUT_OF_RANGE
    )
    validate_window(EVENING, EVENING + timedelta(minutes=30), NOW)

    afternoon = datetime(2025, 11, 7, 13, 0)
    validate_window(afternoon, afternoon + timedelta(minutes=300), NOW)
    assert _violation(afternoon, afternoon + timedelta(minutes=301)) == (
        WindowViolation.DURATION_OUT_OF_RANGE
    )


def test_duration_is_compared_exactly_not_truncated() -> None:
    end = EVENING + timedelta(minutes=29, seconds=59)
    assert _violation(EVENING, end) == WindowViolation.DURATION_OUT_OF_RANGE


def test_closing_time_boundary() -> None:
    start = datetime(2025, 11, 7, 20, 0)
    validate_window(start, datetime(2025, 11, 7, 22, 0, 0), NOW)
    assert _violation(start, datetime(2025, 11, 7, 22, 0, 1)) == (
        WindowViolation.ENDS_AFTER_CLOSING
    )


def test_window_crossing_midnight_is_after_closing() -> None:
    start = datetime(2025, 11, 7, 23, 0)
    assert _violation(start, start + timedelta(hours=2)) == WindowViolation.ENDS_AFTER_CLOSING


def test_rules_are_checked_in_order() -> None:
    past = NOW - timedelta(days=1)
    # Past start and too short: the past-start rule wins.
    assert _violation(past, past + timedelta(minutes=10)) == WindowViolation.START_IN_PAST


def test_error_messages_are_distinct() -> None:
    messages = {
        str(InvalidReservationWindowError(violation)) for violation in WindowViolation
    }
    assert len(messages) == len(WindowViolation)
    assert "reservations are only allowed until 22:00" in messages


def test_create_reservation_returns_entity() -> None:
    reservation = create_reservation(
        reservation_id=ReservationId("rsv_001"),
        user_id=UserId("usr_001"),
        table_id=TableId("tbl_001"),
        start=EVENING,
        end=default_end(EVENING),
        now=NOW,
    )
    assert reservation.start_time == EVENING
    assert reservation.end_time == datetime(2025, 11, 7, 20, 0)
    assert reservation.overlaps(EVENING + timedelta(hours=1), EVENING + timedelta(hours=3))


def test_reservation_rejects_inverted_times() -> None:
    with pytest.raises(ValueError):
        Reservation(
            reservation_id=ReservationId("rsv_001"),
            user_id=UserId("usr_001"),
            table_id=TableId("tbl_001"),
            start_time=EVENING,
            end_time=EVENING,
        )
