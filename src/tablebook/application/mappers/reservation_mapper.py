from __future__ import annotations

from tablebook.application.dto.responses import ReservationResponse
from tablebook.application.ports.repositories import ReservationDetails


def to_reservation_response(details: ReservationDetails) -> ReservationResponse:
    reservation = details.reservation
    return ReservationResponse(
        id=str(reservation.reservation_id),
        email=details.email,
        fullName=details.full_name,
        tableNumber=details.table_number,
        startTime=reservation.start_time,
        endTime=reservation.end_time,
    )
