from __future__ import annotations

from tablebook.application.dto.responses import AuthUserResponse
from tablebook.application.mappers.user_mapper import to_auth_user_response
from tablebook.application.ports.repositories import UserRepository
from tablebook.domain.user.entities import User, normalize_email


class UserNotFoundError(Exception):
    pass


class AccessDeniedError(Exception):
    pass


def load_user(user_repository: UserRepository, identity: str) -> User:
    user = user_repository.get_by_email(normalize_email(identity))
    if user is None:
        raise UserNotFoundError(f"user {identity} not found")
    return user


class AuthorizeAdmin:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, identity: str) -> User:
        user = self._user_repository.get_by_email(normalize_email(identity))
        if user is None or not user.is_admin:
            raise AccessDeniedError("administrator role required")
        return user


class GetCurrentUser:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, identity: str) -> AuthUserResponse:
        return to_auth_user_response(load_user(self._user_repository, identity))
