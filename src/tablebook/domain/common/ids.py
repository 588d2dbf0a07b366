from __future__ import annotations

from typing import NewType

UserId = NewType("UserId", str)
TableId = NewType("TableId", str)
ReservationId = NewType("ReservationId", str)
