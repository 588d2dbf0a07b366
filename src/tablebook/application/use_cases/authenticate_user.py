from __future__ import annotations

from tablebook.application.dto.requests import LoginRequest
from tablebook.application.dto.responses import AuthUserResponse
from tablebook.application.mappers.user_mapper import to_auth_user_response
from tablebook.application.ports.repositories import UserRepository
from tablebook.application.ports.security import PasswordHasher
from tablebook.domain.user.entities import normalize_email


class BadCredentialsError(Exception):
    pass


class AuthenticateUser:
    def __init__(self, user_repository: UserRepository, password_hasher: PasswordHasher) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher

    def execute(self, request_dto: LoginRequest) -> AuthUserResponse:
        # Same message for unknown email and wrong password.
        user = self._user_repository.get_by_email(normalize_email(request_dto.email))
        if user is None:
            raise BadCredentialsError("email or password is incorrect")
        if not self._password_hasher.verify_password(request_dto.password, user.password_hash):
            raise BadCredentialsError("email or password is incorrect")
        return to_auth_user_response(user)
