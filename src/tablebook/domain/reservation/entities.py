from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum

from tablebook.domain.common.ids import ReservationId, TableId, UserId

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 300
DEFAULT_DURATION = timedelta(minutes=120)
LAST_END_OF_DAY = time(22, 0)


class WindowViolation(str, Enum):
    END_NOT_AFTER_START = "END_NOT_AFTER_START"
    START_IN_PAST = "START_IN_PAST"
    DURATION_OUT_OF_RANGE = "DURATION_OUT_OF_RANGE"
    ENDS_AFTER_CLOSING = "ENDS_AFTER_CLOSING"


_VIOLATION_MESSAGES: dict[WindowViolation, str] = {
    WindowViolation.END_NOT_AFTER_START: "end time must be after start time",
    WindowViolation.START_IN_PAST: "reservation start time cannot be in the past",
    WindowViolation.DURATION_OUT_OF_RANGE: (
        f"reservation must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
    ),
    WindowViolation.ENDS_AFTER_CLOSING: (
        f"reservations are only allowed until {LAST_END_OF_DAY.strftime('%H:%M')}"
    ),
}


class InvalidReservationWindowError(Exception):
    def __init__(self, violation: WindowViolation) -> None:
        super().__init__(_VIOLATION_MESSAGES[violation])
        self.violation = violation


def overlaps(
    existing_start: datetime,
    existing_end: datetime,
    requested_start: datetime,
    requested_end: datetime,
) -> bool:
    """Half-open interval overlap: [s1, e1) and [s2, e2) overlap iff s1 < e2 and s2 < e1.

    Touching endpoints (one window ending exactly when the other starts) do not overlap.
    """
    return existing_start < requested_end and existing_end > requested_start


def clamp_minutes(minutes: int | None) -> int:
    if minutes is None:
        return MIN_DURATION_MINUTES
    return max(MIN_DURATION_MINUTES, min(MAX_DURATION_MINUTES, minutes))


def default_end(start: datetime) -> datetime:
    return start + DEFAULT_DURATION


def validate_window(start: datetime, end: datetime, now: datetime) -> None:
    """Check the booking rules in a fixed order so the first violation is deterministic."""
    if end <= start:
        raise InvalidReservationWindowError(WindowViolation.END_NOT_AFTER_START)
    if start < now:
        raise InvalidReservationWindowError(WindowViolation.START_IN_PAST)
    duration = end - start
    if duration < timedelta(minutes=MIN_DURATION_MINUTES) or duration > timedelta(
        minutes=MAX_DURATION_MINUTES
    ):
        raise InvalidReservationWindowError(WindowViolation.DURATION_OUT_OF_RANGE)
    if end > datetime.combine(start.date(), LAST_END_OF_DAY):
        raise InvalidReservationWindowError(WindowViolation.ENDS_AFTER_CLOSING)


@dataclass(frozen=True)
class Reservation:
    reservation_id: ReservationId
    user_id: UserId
    table_id: TableId
    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return overlaps(self.start_time, self.end_time, start, end)


def create_reservation(
    reservation_id: ReservationId,
    user_id: UserId,
    table_id: TableId,
    start: datetime,
    end: datetime,
    now: datetime,
) -> Reservation:
    validate_window(start, end, now)
    return Reservation(
        reservation_id=reservation_id,
        user_id=user_id,
        table_id=table_id,
        start_time=start,
        end_time=end,
    )
