from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from tablebook.domain.common.ids import ReservationId, UserId
from tablebook.domain.reservation.entities import Reservation
from tablebook.domain.table.entities import Table
from tablebook.domain.user.entities import User


@dataclass(frozen=True)
class ReservationDetails:
    reservation: Reservation
    email: str
    full_name: str
    table_number: int


class UserRepository(Protocol):
    def get(self, user_id: UserId) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def add(self, user: User) -> None: ...

    def update(self, user: User) -> None: ...


class TableRepository(Protocol):
    def get_by_number(self, number: int) -> Table | None: ...

    def list_all(self) -> list[Table]: ...

    def list_available(self, start: datetime, end: datetime) -> list[Table]: ...

    def add(self, table: Table) -> None: ...


class ReservationRepository(Protocol):
    def get(self, reservation_id: ReservationId) -> Reservation | None: ...

    def get_details(self, reservation_id: ReservationId) -> ReservationDetails | None: ...

    def find_by_user_id(self, user_id: UserId) -> Reservation | None: ...

    def find_details_by_user_email(self, email: str) -> ReservationDetails | None: ...

    def exists_overlap(self, table: Table, start: datetime, end: datetime) -> bool: ...

    def add_exclusive(self, reservation: Reservation) -> None: ...

    def remove(self, reservation_id: ReservationId) -> Reservation | None: ...

    def list_all_details(self) -> list[ReservationDetails]: ...


class DuplicateEmailError(Exception):
    pass


class UserReservationExistsError(Exception):
    pass


class TableSlotTakenError(Exception):
    pass
