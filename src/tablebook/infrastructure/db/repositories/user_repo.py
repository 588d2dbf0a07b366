from __future__ import annotations

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook.application.ports.repositories import DuplicateEmailError, UserRepository
from tablebook.domain.common.ids import UserId
from tablebook.domain.user.entities import Role, User
from tablebook.infrastructure.db.models.user import UserModel
from tablebook.infrastructure.db.session import get_engine


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, user_id: UserId) -> User | None:
        statement = select(UserModel).where(UserModel.id == str(user_id))
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return None if model is None else _to_domain(model)

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserModel).where(UserModel.email == email).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return None if model is None else _to_domain(model)

    def add(self, user: User) -> None:
        with Session(self._engine) as session:
            session.add(_to_model(user))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(f"email {user.email} is already registered") from exc

    def update(self, user: User) -> None:
        statement = (
            update(UserModel)
            .where(UserModel.id == str(user.user_id))
            .values(
                email=user.email,
                password_hash=user.password_hash,
                role=user.role.value,
                full_name=user.full_name,
                phone=user.phone,
            )
        )
        with Session(self._engine) as session:
            try:
                session.execute(statement)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(f"email {user.email} is already registered") from exc


def _to_model(user: User) -> UserModel:
    return UserModel(
        id=str(user.user_id),
        email=user.email,
        password_hash=user.password_hash,
        role=user.role.value,
        full_name=user.full_name,
        phone=user.phone,
    )


def _to_domain(model: UserModel) -> User:
    return User(
        user_id=UserId(model.id),
        email=model.email,
        password_hash=model.password_hash,
        role=Role(model.role),
        full_name=model.full_name,
        phone=model.phone,
    )
