from __future__ import annotations

from datetime import datetime, timedelta

from tablebook.application.dto.responses import TableResponse
from tablebook.application.mappers.table_mapper import to_table_response
from tablebook.application.metrics.reservations import record_availability_query
from tablebook.application.ports.repositories import TableRepository
from tablebook.application.use_cases.clock import as_local
from tablebook.domain.reservation.entities import clamp_minutes


class FindAvailableTables:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, start: datetime, minutes: int | None = None) -> list[TableResponse]:
        window_start = as_local(start)
        window_end = window_start + timedelta(minutes=clamp_minutes(minutes))
        tables = self._table_repository.list_available(window_start, window_end)
        record_availability_query(len(tables))
        return [to_table_response(table) for table in sorted(tables, key=lambda t: t.number)]
