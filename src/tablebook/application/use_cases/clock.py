from __future__ import annotations

from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().replace(microsecond=0)


def as_local(value: datetime) -> datetime:
    """Reservation times are local wall-clock values; aware inputs are converted and stripped."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
