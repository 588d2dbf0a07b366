from __future__ import annotations

from tablebook.application.dto.responses import ReservationResponse
from tablebook.application.mappers.reservation_mapper import to_reservation_response
from tablebook.application.ports.repositories import ReservationRepository
from tablebook.domain.user.entities import normalize_email


class GetMyReservation:
    def __init__(self, reservation_repository: ReservationRepository) -> None:
        self._reservation_repository = reservation_repository

    def execute(self, identity: str) -> ReservationResponse | None:
        details = self._reservation_repository.find_details_by_user_email(normalize_email(identity))
        if details is None:
            return None
        return to_reservation_response(details)
