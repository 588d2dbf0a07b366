from __future__ import annotations

from typing import Protocol

RESERVATION_EVENTS_CHANNEL = "events:reservations"


class EventPublisher(Protocol):
    def publish(self, channel: str, message: str) -> None: ...
