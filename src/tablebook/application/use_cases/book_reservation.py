from __future__ import annotations

import logging
from uuid import uuid4

from tablebook.application.dto.requests import CreateReservationRequest
from tablebook.application.dto.responses import ReservationResponse
from tablebook.application.mappers.event_envelope import serialize_reservation_created_event
from tablebook.application.mappers.reservation_mapper import to_reservation_response
from tablebook.application.metrics.reservations import (
    record_reservation_created,
    record_reservation_rejected,
)
from tablebook.application.ports.publisher import RESERVATION_EVENTS_CHANNEL, EventPublisher
from tablebook.application.ports.repositories import (
    ReservationDetails,
    ReservationRepository,
    TableRepository,
    TableSlotTakenError,
    UserRepository,
    UserReservationExistsError,
)
from tablebook.application.use_cases.clock import Clock, as_local, local_now
from tablebook.application.use_cases.context import TraceContext
from tablebook.application.use_cases.events import publish_quietly
from tablebook.application.use_cases.users import load_user
from tablebook.domain.common.ids import ReservationId
from tablebook.domain.reservation.entities import (
    InvalidReservationWindowError,
    create_reservation,
    default_end,
)

logger = logging.getLogger(__name__)


class UserAlreadyReservedError(Exception):
    pass


class TableNotFoundError(Exception):
    pass


class TableAlreadyReservedError(Exception):
    pass


class ReservationWindowError(Exception):
    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.details = {"reason": reason}


class BookReservation:
    """Grant a table for a time window to the requesting user.

    Preconditions are evaluated in a fixed order (user, existing reservation, table,
    window, overlap) so a request violating several rules always gets the same error.
    The final overlap check and the insert happen inside ``add_exclusive``, which the
    repository runs as one atomic unit.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        table_repository: TableRepository,
        reservation_repository: ReservationRepository,
        publisher: EventPublisher,
        clock: Clock = local_now,
    ) -> None:
        self._user_repository = user_repository
        self._table_repository = table_repository
        self._reservation_repository = reservation_repository
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        identity: str,
        request_dto: CreateReservationRequest,
        trace_ctx: TraceContext,
    ) -> ReservationResponse:
        user = load_user(self._user_repository, identity)

        if self._reservation_repository.find_by_user_id(user.user_id) is not None:
            raise self._rejected(
                UserAlreadyReservedError(f"user {user.email} already has an active reservation"),
                reason="USER_ALREADY_RESERVED",
            )

        table = self._table_repository.get_by_number(request_dto.table_number)
        if table is None:
            raise self._rejected(
                TableNotFoundError(f"table with number {request_dto.table_number} does not exist"),
                reason="TABLE_NOT_FOUND",
            )

        start = as_local(request_dto.start_time)
        if request_dto.end_time is None:
            end = default_end(start)
        else:
            end = as_local(request_dto.end_time)
        try:
            reservation = create_reservation(
                reservation_id=ReservationId(f"rsv_{uuid4().hex[:12]}"),
                user_id=user.user_id,
                table_id=table.table_id,
                start=start,
                end=end,
                now=self._clock(),
            )
        except InvalidReservationWindowError as exc:
            raise self._rejected(
                ReservationWindowError(str(exc), reason=exc.violation.value),
                reason=exc.violation.value,
            ) from exc

        table_taken = TableAlreadyReservedError(
            f"table {table.number} is already reserved in the selected time window"
        )
        # add_exclusive repeats this check atomically with the insert.
        if self._reservation_repository.exists_overlap(table, start, end):
            raise self._rejected(table_taken, reason="TABLE_ALREADY_RESERVED")

        try:
            self._reservation_repository.add_exclusive(reservation)
        except UserReservationExistsError as exc:
            raise self._rejected(
                UserAlreadyReservedError(f"user {user.email} already has an active reservation"),
                reason="USER_ALREADY_RESERVED",
            ) from exc
        except TableSlotTakenError as exc:
            raise self._rejected(table_taken, reason="TABLE_ALREADY_RESERVED") from exc

        details = ReservationDetails(
            reservation=reservation,
            email=user.email,
            full_name=user.full_name,
            table_number=table.number,
        )
        duration_minutes = (reservation.end_time - reservation.start_time).total_seconds() / 60
        record_reservation_created(duration_minutes)
        logger.info(
            "reservation_created",
            extra={
                "reservation_id": str(reservation.reservation_id),
                "table_number": table.number,
            },
        )
        message = serialize_reservation_created_event(
            occurred_at=self._clock(),
            details=details,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        )
        publish_quietly(self._publisher, RESERVATION_EVENTS_CHANNEL, message)
        return to_reservation_response(details)

    def _rejected(self, exc: Exception, reason: str) -> Exception:
        record_reservation_rejected(reason)
        logger.info("reservation_rejected", extra={"reason": reason})
        return exc
