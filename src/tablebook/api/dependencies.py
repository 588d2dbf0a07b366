from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Request

from tablebook.api.middleware.auth import NotAuthenticatedError
from tablebook.application.ports.publisher import EventPublisher
from tablebook.application.ports.repositories import (
    ReservationRepository,
    TableRepository,
    UserRepository,
)
from tablebook.application.ports.security import PasswordHasher, TokenService
from tablebook.application.use_cases.clock import Clock, local_now
from tablebook.application.use_cases.users import AuthorizeAdmin
from tablebook.domain.user.entities import User
from tablebook.infrastructure.auth.bcrypt_hasher import BcryptPasswordHasher
from tablebook.infrastructure.db.repositories.reservation_repo import (
    SqlAlchemyReservationRepository,
)
from tablebook.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from tablebook.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from tablebook.infrastructure.memory.store import (
    InMemoryReservationRepository,
    InMemoryStore,
    InMemoryTableRepository,
    InMemoryUserRepository,
)
from tablebook.infrastructure.messaging.redis_publisher import build_event_publisher
from tablebook.tools.seed import seed_from_environment

POSTGRES_BACKEND = "postgres"
MEMORY_BACKEND = "memory"


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    tables: TableRepository
    reservations: ReservationRepository


def storage_backend() -> str:
    backend = os.getenv("STORAGE_BACKEND", POSTGRES_BACKEND).strip().lower()
    if backend not in {POSTGRES_BACKEND, MEMORY_BACKEND}:
        raise RuntimeError(f"unsupported STORAGE_BACKEND: {backend}")
    return backend


def build_memory_repositories(seed: bool = True) -> Repositories:
    store = InMemoryStore()
    repositories = Repositories(
        users=InMemoryUserRepository(store),
        tables=InMemoryTableRepository(store),
        reservations=InMemoryReservationRepository(store),
    )
    if seed:
        seed_from_environment(repositories.users, repositories.tables, get_password_hasher())
    return repositories


def build_postgres_repositories() -> Repositories:
    return Repositories(
        users=SqlAlchemyUserRepository(),
        tables=SqlAlchemyTableRepository(),
        reservations=SqlAlchemyReservationRepository(),
    )


@lru_cache(maxsize=2)
def _build_repositories(backend: str) -> Repositories:
    if backend == MEMORY_BACKEND:
        return build_memory_repositories()
    return build_postgres_repositories()


def get_repositories() -> Repositories:
    return _build_repositories(storage_backend())


@lru_cache(maxsize=1)
def _build_publisher() -> EventPublisher:
    return build_event_publisher()


def get_publisher() -> EventPublisher:
    return _build_publisher()


def get_clock() -> Clock:
    return local_now


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher()


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def require_identity(request: Request) -> str:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise NotAuthenticatedError("authentication required")
    return identity


def require_admin(
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
) -> User:
    return AuthorizeAdmin(user_repository=repositories.users).execute(identity=identity)
