from __future__ import annotations

from datetime import datetime

from sqlalchemy import Engine, Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook.application.ports.repositories import (
    ReservationDetails,
    ReservationRepository,
    TableSlotTakenError,
    UserReservationExistsError,
)
from tablebook.domain.common.ids import ReservationId, TableId, UserId
from tablebook.domain.reservation.entities import Reservation
from tablebook.domain.table.entities import Table
from tablebook.infrastructure.db.models.reservation import (
    TABLE_PERIOD_EXCLUSION_CONSTRAINT,
    USER_UNIQUE_CONSTRAINT,
    ReservationModel,
)
from tablebook.infrastructure.db.models.table import TableModel
from tablebook.infrastructure.db.models.user import UserModel
from tablebook.infrastructure.db.repositories.table_repo import overlap_clause
from tablebook.infrastructure.db.session import get_engine


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, reservation_id: ReservationId) -> Reservation | None:
        statement = select(ReservationModel).where(ReservationModel.id == str(reservation_id))
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return None if model is None else _to_domain(model)

    def get_details(self, reservation_id: ReservationId) -> ReservationDetails | None:
        statement = _details_statement().where(ReservationModel.id == str(reservation_id))
        with Session(self._engine) as session:
            row = session.execute(statement).first()
        return None if row is None else _to_details(row)

    def find_by_user_id(self, user_id: UserId) -> Reservation | None:
        statement = select(ReservationModel).where(ReservationModel.user_id == str(user_id))
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return None if model is None else _to_domain(model)

    def find_details_by_user_email(self, email: str) -> ReservationDetails | None:
        statement = _details_statement().where(UserModel.email == email)
        with Session(self._engine) as session:
            row = session.execute(statement).first()
        return None if row is None else _to_details(row)

    def exists_overlap(self, table: Table, start: datetime, end: datetime) -> bool:
        statement = (
            select(ReservationModel.id)
            .where(
                ReservationModel.table_id == str(table.table_id),
                overlap_clause(start, end),
            )
            .limit(1)
        )
        with Session(self._engine) as session:
            return session.execute(statement).first() is not None

    def add_exclusive(self, reservation: Reservation) -> None:
        """Re-check both invariants and insert in one transaction.

        The user and table rows are locked first, so concurrent bookings touching
        either of them serialize here. The unique and exclusion constraints catch
        anything that still slips through.
        """
        with Session(self._engine) as session:
            session.execute(
                select(UserModel.id)
                .where(UserModel.id == str(reservation.user_id))
                .with_for_update()
            )
            session.execute(
                select(TableModel.id)
                .where(TableModel.id == str(reservation.table_id))
                .with_for_update()
            )

            user_taken = session.execute(
                select(ReservationModel.id)
                .where(ReservationModel.user_id == str(reservation.user_id))
                .limit(1)
            ).first()
            if user_taken is not None:
                session.rollback()
                raise UserReservationExistsError(
                    f"user {reservation.user_id} already has a reservation"
                )

            slot_taken = session.execute(
                select(ReservationModel.id)
                .where(
                    ReservationModel.table_id == str(reservation.table_id),
                    overlap_clause(reservation.start_time, reservation.end_time),
                )
                .limit(1)
            ).first()
            if slot_taken is not None:
                session.rollback()
                raise TableSlotTakenError(f"table {reservation.table_id} slot is taken")

            session.add(_to_model(reservation))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                conflict = _conflict_from(exc, reservation)
                if conflict is None:
                    raise
                raise conflict from exc

    def remove(self, reservation_id: ReservationId) -> Reservation | None:
        statement = (
            select(ReservationModel)
            .where(ReservationModel.id == str(reservation_id))
            .with_for_update()
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                session.rollback()
                return None
            removed = _to_domain(model)
            session.delete(model)
            session.commit()
        return removed

    def list_all_details(self) -> list[ReservationDetails]:
        statement = _details_statement().order_by(
            ReservationModel.start_time, TableModel.number
        )
        with Session(self._engine) as session:
            rows = list(session.execute(statement).all())
        return [_to_details(row) for row in rows]


def _details_statement() -> Select:
    return (
        select(ReservationModel, UserModel.email, UserModel.full_name, TableModel.number)
        .join(UserModel, UserModel.id == ReservationModel.user_id)
        .join(TableModel, TableModel.id == ReservationModel.table_id)
    )


def _conflict_from(exc: IntegrityError, reservation: Reservation) -> Exception | None:
    diag = getattr(exc.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name == USER_UNIQUE_CONSTRAINT:
        return UserReservationExistsError(f"user {reservation.user_id} already has a reservation")
    if constraint_name == TABLE_PERIOD_EXCLUSION_CONSTRAINT:
        return TableSlotTakenError(f"table {reservation.table_id} slot is taken")
    return None


def _to_model(reservation: Reservation) -> ReservationModel:
    return ReservationModel(
        id=str(reservation.reservation_id),
        user_id=str(reservation.user_id),
        table_id=str(reservation.table_id),
        start_time=reservation.start_time,
        end_time=reservation.end_time,
    )


def _to_domain(model: ReservationModel) -> Reservation:
    return Reservation(
        reservation_id=ReservationId(model.id),
        user_id=UserId(model.user_id),
        table_id=TableId(model.table_id),
        start_time=model.start_time,
        end_time=model.end_time,
    )


def _to_details(row) -> ReservationDetails:
    model, email, full_name, table_number = row
    return ReservationDetails(
        reservation=_to_domain(model),
        email=email,
        full_name=full_name,
        table_number=int(table_number),
    )
