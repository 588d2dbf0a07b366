from __future__ import annotations

import logging

from tablebook.application.mappers.event_envelope import serialize_reservation_cancelled_event
from tablebook.application.metrics.reservations import record_reservation_cancelled
from tablebook.application.ports.publisher import RESERVATION_EVENTS_CHANNEL, EventPublisher
from tablebook.application.ports.repositories import ReservationRepository, UserRepository
from tablebook.application.use_cases.clock import Clock, local_now
from tablebook.application.use_cases.context import TraceContext
from tablebook.application.use_cases.events import publish_quietly
from tablebook.application.use_cases.users import AccessDeniedError, load_user
from tablebook.domain.common.ids import ReservationId

logger = logging.getLogger(__name__)


class ReservationNotFoundError(Exception):
    pass


class CancelReservation:
    def __init__(
        self,
        user_repository: UserRepository,
        reservation_repository: ReservationRepository,
        publisher: EventPublisher,
        clock: Clock = local_now,
    ) -> None:
        self._user_repository = user_repository
        self._reservation_repository = reservation_repository
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        reservation_id: ReservationId,
        identity: str,
        trace_ctx: TraceContext,
    ) -> None:
        requester = load_user(self._user_repository, identity)
        details = self._reservation_repository.get_details(reservation_id)
        if details is None:
            raise ReservationNotFoundError(f"reservation {reservation_id} not found")

        if details.reservation.user_id != requester.user_id and not requester.is_admin:
            raise AccessDeniedError("only the owner or an administrator may cancel a reservation")

        # A concurrent cancel may have won between the read and the delete.
        if self._reservation_repository.remove(reservation_id) is None:
            raise ReservationNotFoundError(f"reservation {reservation_id} not found")

        record_reservation_cancelled(by_admin=details.reservation.user_id != requester.user_id)
        logger.info(
            "reservation_cancelled",
            extra={"reservation_id": str(reservation_id), "table_number": details.table_number},
        )
        message = serialize_reservation_cancelled_event(
            occurred_at=self._clock(),
            details=details,
            cancelled_by=requester.email,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        )
        publish_quietly(self._publisher, RESERVATION_EVENTS_CHANNEL, message)
