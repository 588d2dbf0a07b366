from __future__ import annotations

import logging
from uuid import uuid4

from tablebook.application.dto.requests import RegisterRequest
from tablebook.application.dto.responses import AuthUserResponse
from tablebook.application.mappers.user_mapper import to_auth_user_response
from tablebook.application.ports.repositories import DuplicateEmailError, UserRepository
from tablebook.application.ports.security import PasswordHasher
from tablebook.domain.common.ids import UserId
from tablebook.domain.user.entities import Role, User, normalize_email

logger = logging.getLogger(__name__)


class EmailTakenError(Exception):
    pass


class RegisterUser:
    def __init__(self, user_repository: UserRepository, password_hasher: PasswordHasher) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher

    def execute(self, request_dto: RegisterRequest) -> AuthUserResponse:
        email = normalize_email(request_dto.email)
        if self._user_repository.get_by_email(email) is not None:
            raise EmailTakenError(f"email {email} is already registered")

        phone = request_dto.phone.strip() if request_dto.phone else None
        user = User(
            user_id=UserId(f"usr_{uuid4().hex[:12]}"),
            email=email,
            password_hash=self._password_hasher.hash_password(request_dto.password),
            role=Role.USER,
            full_name=request_dto.full_name.strip(),
            phone=phone or None,
        )
        try:
            self._user_repository.add(user)
        except DuplicateEmailError as exc:
            raise EmailTakenError(f"email {email} is already registered") from exc

        logger.info("user_registered", extra={"user_id": str(user.user_id)})
        return to_auth_user_response(user)
