from __future__ import annotations

from dataclasses import dataclass

from tablebook.domain.common.ids import TableId


@dataclass(frozen=True)
class Table:
    table_id: TableId
    number: int
    seats: int

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError("table number must be >= 1")
        if self.seats < 1:
            raise ValueError("seats must be >= 1")
