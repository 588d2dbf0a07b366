from __future__ import annotations

from tablebook.application.dto.responses import ReservationResponse
from tablebook.application.mappers.reservation_mapper import to_reservation_response
from tablebook.application.ports.repositories import ReservationRepository


class ListReservations:
    def __init__(self, reservation_repository: ReservationRepository) -> None:
        self._reservation_repository = reservation_repository

    def execute(self) -> list[ReservationResponse]:
        rows = sorted(
            self._reservation_repository.list_all_details(),
            key=lambda row: (row.reservation.start_time, row.table_number),
        )
        return [to_reservation_response(row) for row in rows]
