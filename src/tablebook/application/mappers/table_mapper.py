from __future__ import annotations

from tablebook.application.dto.responses import TableResponse
from tablebook.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        id=str(table.table_id),
        tableNumber=table.number,
        numberOfSeats=table.seats,
    )
