from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from tablebook.application.ports.repositories import (
    DuplicateEmailError,
    ReservationDetails,
    ReservationRepository,
    TableRepository,
    TableSlotTakenError,
    UserRepository,
    UserReservationExistsError,
)
from tablebook.domain.common.ids import ReservationId, TableId, UserId
from tablebook.domain.reservation.entities import Reservation
from tablebook.domain.table.entities import Table
from tablebook.domain.user.entities import User


@dataclass
class InMemoryStore:
    """Single-process arena: entities keyed by id plus secondary indexes.

    Every read and write goes through ``lock`` so check-then-insert sequences are
    atomic for all repositories sharing the store.
    """

    lock: threading.RLock = field(default_factory=threading.RLock)
    users: dict[UserId, User] = field(default_factory=dict)
    user_id_by_email: dict[str, UserId] = field(default_factory=dict)
    tables: dict[TableId, Table] = field(default_factory=dict)
    table_id_by_number: dict[int, TableId] = field(default_factory=dict)
    reservations: dict[ReservationId, Reservation] = field(default_factory=dict)
    reservation_id_by_user: dict[UserId, ReservationId] = field(default_factory=dict)
    reservation_ids_by_table: dict[TableId, set[ReservationId]] = field(default_factory=dict)


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get(self, user_id: UserId) -> User | None:
        with self._store.lock:
            return self._store.users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        with self._store.lock:
            user_id = self._store.user_id_by_email.get(email)
            return None if user_id is None else self._store.users[user_id]

    def add(self, user: User) -> None:
        with self._store.lock:
            if user.email in self._store.user_id_by_email:
                raise DuplicateEmailError(f"email {user.email} is already registered")
            self._store.users[user.user_id] = user
            self._store.user_id_by_email[user.email] = user.user_id

    def update(self, user: User) -> None:
        with self._store.lock:
            current = self._store.users.get(user.user_id)
            if current is None:
                return
            owner = self._store.user_id_by_email.get(user.email)
            if owner is not None and owner != user.user_id:
                raise DuplicateEmailError(f"email {user.email} is already registered")
            if current.email != user.email:
                del self._store.user_id_by_email[current.email]
                self._store.user_id_by_email[user.email] = user.user_id
            self._store.users[user.user_id] = user


class InMemoryTableRepository(TableRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_number(self, number: int) -> Table | None:
        with self._store.lock:
            table_id = self._store.table_id_by_number.get(number)
            return None if table_id is None else self._store.tables[table_id]

    def list_all(self) -> list[Table]:
        with self._store.lock:
            return sorted(self._store.tables.values(), key=lambda table: table.number)

    def list_available(self, start: datetime, end: datetime) -> list[Table]:
        with self._store.lock:
            return [
                table
                for table in sorted(self._store.tables.values(), key=lambda t: t.number)
                if not _table_has_overlap(self._store, table.table_id, start, end)
            ]

    def add(self, table: Table) -> None:
        with self._store.lock:
            if table.number in self._store.table_id_by_number:
                raise ValueError(f"table number {table.number} already exists")
            self._store.tables[table.table_id] = table
            self._store.table_id_by_number[table.number] = table.table_id
            self._store.reservation_ids_by_table.setdefault(table.table_id, set())


class InMemoryReservationRepository(ReservationRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get(self, reservation_id: ReservationId) -> Reservation | None:
        with self._store.lock:
            return self._store.reservations.get(reservation_id)

    def get_details(self, reservation_id: ReservationId) -> ReservationDetails | None:
        with self._store.lock:
            reservation = self._store.reservations.get(reservation_id)
            return None if reservation is None else self._details(reservation)

    def find_by_user_id(self, user_id: UserId) -> Reservation | None:
        with self._store.lock:
            reservation_id = self._store.reservation_id_by_user.get(user_id)
            return None if reservation_id is None else self._store.reservations[reservation_id]

    def find_details_by_user_email(self, email: str) -> ReservationDetails | None:
        with self._store.lock:
            user_id = self._store.user_id_by_email.get(email)
            if user_id is None:
                return None
            reservation = self.find_by_user_id(user_id)
            return None if reservation is None else self._details(reservation)

    def exists_overlap(self, table: Table, start: datetime, end: datetime) -> bool:
        with self._store.lock:
            return _table_has_overlap(self._store, table.table_id, start, end)

    def add_exclusive(self, reservation: Reservation) -> None:
        with self._store.lock:
            if reservation.user_id in self._store.reservation_id_by_user:
                raise UserReservationExistsError(
                    f"user {reservation.user_id} already has a reservation"
                )
            if _table_has_overlap(
                self._store, reservation.table_id, reservation.start_time, reservation.end_time
            ):
                raise TableSlotTakenError(f"table {reservation.table_id} slot is taken")
            self._store.reservations[reservation.reservation_id] = reservation
            self._store.reservation_id_by_user[reservation.user_id] = reservation.reservation_id
            self._store.reservation_ids_by_table.setdefault(reservation.table_id, set()).add(
                reservation.reservation_id
            )

    def remove(self, reservation_id: ReservationId) -> Reservation | None:
        with self._store.lock:
            reservation = self._store.reservations.pop(reservation_id, None)
            if reservation is None:
                return None
            self._store.reservation_id_by_user.pop(reservation.user_id, None)
            self._store.reservation_ids_by_table.get(reservation.table_id, set()).discard(
                reservation_id
            )
            return reservation

    def list_all_details(self) -> list[ReservationDetails]:
        with self._store.lock:
            details = [self._details(r) for r in self._store.reservations.values()]
        return sorted(
            details, key=lambda item: (item.reservation.start_time, item.table_number)
        )

    def _details(self, reservation: Reservation) -> ReservationDetails:
        user = self._store.users[reservation.user_id]
        table = self._store.tables[reservation.table_id]
        return ReservationDetails(
            reservation=reservation,
            email=user.email,
            full_name=user.full_name,
            table_number=table.number,
        )


def _table_has_overlap(
    store: InMemoryStore, table_id: TableId, start: datetime, end: datetime
) -> bool:
    return any(
        store.reservations[reservation_id].overlaps(start, end)
        for reservation_id in store.reservation_ids_by_table.get(table_id, ())
    )
