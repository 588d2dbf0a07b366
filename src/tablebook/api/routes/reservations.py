from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status

from tablebook.api.dependencies import (
    Repositories,
    get_clock,
    get_publisher,
    get_repositories,
    require_admin,
    require_identity,
)
from tablebook.api.middleware.auth import NotAuthenticatedError
from tablebook.api.middleware.request_id import get_request_id
from tablebook.application.dto.requests import CreateReservationRequest
from tablebook.application.dto.responses import ReservationResponse, TableResponse
from tablebook.application.ports.publisher import EventPublisher
from tablebook.application.use_cases.book_reservation import BookReservation
from tablebook.application.use_cases.cancel_reservation import CancelReservation
from tablebook.application.use_cases.clock import Clock
from tablebook.application.use_cases.context import TraceContext
from tablebook.application.use_cases.find_available_tables import FindAvailableTables
from tablebook.application.use_cases.get_my_reservation import GetMyReservation
from tablebook.application.use_cases.list_reservations import ListReservations
from tablebook.application.use_cases.users import UserNotFoundError
from tablebook.domain.common.ids import ReservationId
from tablebook.domain.user.entities import User
from tablebook.infrastructure.observability.otel import current_trace_id

router = APIRouter(prefix="/reservations", tags=["reservations"])


def _trace_ctx() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


@router.post("", response_model=ReservationResponse)
def create_reservation(
    request_dto: CreateReservationRequest,
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
    publisher: EventPublisher = Depends(get_publisher),
    clock: Clock = Depends(get_clock),
) -> ReservationResponse:
    use_case = BookReservation(
        user_repository=repositories.users,
        table_repository=repositories.tables,
        reservation_repository=repositories.reservations,
        publisher=publisher,
        clock=clock,
    )
    return use_case.execute(identity=identity, request_dto=request_dto, trace_ctx=_trace_ctx())


@router.get("/available", response_model=list[TableResponse])
def available_tables(
    start: datetime = Query(...),
    minutes: int | None = Query(default=None),
    _: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
) -> list[TableResponse]:
    use_case = FindAvailableTables(table_repository=repositories.tables)
    return use_case.execute(start=start, minutes=minutes)


@router.get(
    "/mine",
    response_model=ReservationResponse,
    responses={status.HTTP_204_NO_CONTENT: {"description": "No active reservation"}},
)
def my_reservation(
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
):
    reservation = GetMyReservation(reservation_repository=repositories.reservations).execute(
        identity=identity
    )
    if reservation is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return reservation


@router.get("/all", response_model=list[ReservationResponse])
def all_reservations(
    _: User = Depends(require_admin),
    repositories: Repositories = Depends(get_repositories),
) -> list[ReservationResponse]:
    return ListReservations(reservation_repository=repositories.reservations).execute()


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_reservation(
    reservation_id: str,
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
    publisher: EventPublisher = Depends(get_publisher),
    clock: Clock = Depends(get_clock),
) -> Response:
    use_case = CancelReservation(
        user_repository=repositories.users,
        reservation_repository=repositories.reservations,
        publisher=publisher,
        clock=clock,
    )
    try:
        use_case.execute(
            reservation_id=ReservationId(reservation_id),
            identity=identity,
            trace_ctx=_trace_ctx(),
        )
    except UserNotFoundError as exc:
        raise NotAuthenticatedError("authentication required") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
