from __future__ import annotations

import logging
import os
from uuid import uuid4

from sqlalchemy import inspect

from tablebook.application.ports.repositories import TableRepository, UserRepository
from tablebook.application.ports.security import PasswordHasher
from tablebook.domain.common.ids import TableId, UserId
from tablebook.domain.table.entities import Table
from tablebook.domain.user.entities import Role, User, normalize_email
from tablebook.infrastructure.auth.bcrypt_hasher import BcryptPasswordHasher
from tablebook.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from tablebook.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from tablebook.infrastructure.db.session import get_engine

logger = logging.getLogger(__name__)

DEFAULT_TABLE_COUNT = 10
# Seat counts repeat in this order across table numbers.
_SEAT_PATTERN = (2, 2, 4, 4, 4, 6)


def seed_tables(table_repository: TableRepository, count: int) -> int:
    created = 0
    for number in range(1, count + 1):
        if table_repository.get_by_number(number) is not None:
            continue
        table_repository.add(
            Table(
                table_id=TableId(f"tbl_{number:03d}"),
                number=number,
                seats=_SEAT_PATTERN[(number - 1) % len(_SEAT_PATTERN)],
            )
        )
        created += 1
    return created


def seed_admin(
    user_repository: UserRepository,
    password_hasher: PasswordHasher,
    email: str,
    password: str,
) -> bool:
    normalized = normalize_email(email)
    if user_repository.get_by_email(normalized) is not None:
        return False
    user_repository.add(
        User(
            user_id=UserId(f"usr_{uuid4().hex[:12]}"),
            email=normalized,
            password_hash=password_hasher.hash_password(password),
            role=Role.ADMIN,
            full_name="Administrator",
        )
    )
    return True


def seed_from_environment(
    user_repository: UserRepository,
    table_repository: TableRepository,
    password_hasher: PasswordHasher,
) -> None:
    table_count = int(os.getenv("SEED_TABLE_COUNT", str(DEFAULT_TABLE_COUNT)))
    tables_created = seed_tables(table_repository, table_count)

    admin_created = False
    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if admin_email and admin_password:
        admin_created = seed_admin(user_repository, password_hasher, admin_email, admin_password)

    logger.info(
        "seed_complete",
        extra={"tables_created": tables_created, "admin_created": admin_created},
    )


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    required_tables = {"users", "tables", "reservations"}
    if not required_tables.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    seed_from_environment(
        user_repository=SqlAlchemyUserRepository(engine),
        table_repository=SqlAlchemyTableRepository(engine),
        password_hasher=BcryptPasswordHasher(),
    )
    print("seed complete")


if __name__ == "__main__":
    main()
