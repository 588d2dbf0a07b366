from __future__ import annotations

from datetime import datetime

from sqlalchemy import Engine, and_, exists, select
from sqlalchemy.orm import Session

from tablebook.application.ports.repositories import TableRepository
from tablebook.domain.common.ids import TableId
from tablebook.domain.table.entities import Table
from tablebook.infrastructure.db.models.reservation import ReservationModel
from tablebook.infrastructure.db.models.table import TableModel
from tablebook.infrastructure.db.session import get_engine


def overlap_clause(start: datetime, end: datetime):
    """SQL form of ``domain.reservation.entities.overlaps`` against ``ReservationModel``."""
    return and_(ReservationModel.start_time < end, ReservationModel.end_time > start)


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_by_number(self, number: int) -> Table | None:
        statement = select(TableModel).where(TableModel.number == number)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return None if model is None else _to_domain(model)

    def list_all(self) -> list[Table]:
        statement = select(TableModel).order_by(TableModel.number)
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
        return [_to_domain(model) for model in models]

    def list_available(self, start: datetime, end: datetime) -> list[Table]:
        conflicting = exists().where(
            ReservationModel.table_id == TableModel.id,
            overlap_clause(start, end),
        )
        statement = select(TableModel).where(~conflicting).order_by(TableModel.number)
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
        return [_to_domain(model) for model in models]

    def add(self, table: Table) -> None:
        with Session(self._engine) as session:
            session.add(
                TableModel(id=str(table.table_id), number=table.number, seats=table.seats)
            )
            session.commit()


def _to_domain(model: TableModel) -> Table:
    return Table(table_id=TableId(model.id), number=model.number, seats=model.seats)
