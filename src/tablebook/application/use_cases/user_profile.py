from __future__ import annotations

from tablebook.application.dto.requests import ChangePasswordRequest, UpdateProfileRequest
from tablebook.application.dto.responses import UserProfileResponse
from tablebook.application.mappers.user_mapper import to_user_profile_response
from tablebook.application.ports.repositories import DuplicateEmailError, UserRepository
from tablebook.application.ports.security import PasswordHasher
from tablebook.application.use_cases.authenticate_user import BadCredentialsError
from tablebook.application.use_cases.register_user import EmailTakenError
from tablebook.application.use_cases.users import load_user

MIN_PASSWORD_LENGTH = 6


class InvalidPasswordError(Exception):
    pass


class GetProfile:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, identity: str) -> UserProfileResponse:
        return to_user_profile_response(load_user(self._user_repository, identity))


class UpdateProfile:
    """Apply the non-blank profile fields.

    Changing the email changes the token subject, so the caller has to issue a new
    token for the returned profile.
    """

    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, identity: str, request_dto: UpdateProfileRequest) -> UserProfileResponse:
        user = load_user(self._user_repository, identity)
        updated = user.with_profile(
            full_name=request_dto.full_name,
            email=request_dto.email,
            phone=request_dto.phone,
        )
        if updated.email != user.email:
            other = self._user_repository.get_by_email(updated.email)
            if other is not None and other.user_id != user.user_id:
                raise EmailTakenError(f"email {updated.email} is already registered")
        try:
            self._user_repository.update(updated)
        except DuplicateEmailError as exc:
            raise EmailTakenError(f"email {updated.email} is already registered") from exc
        return to_user_profile_response(updated)


class ChangePassword:
    def __init__(self, user_repository: UserRepository, password_hasher: PasswordHasher) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher

    def execute(self, identity: str, request_dto: ChangePasswordRequest) -> None:
        user = load_user(self._user_repository, identity)
        if not self._password_hasher.verify_password(request_dto.old_password, user.password_hash):
            raise BadCredentialsError("old password is incorrect")
        if len(request_dto.new_password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordError(
                f"new password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        self._user_repository.update(
            user.with_password_hash(self._password_hasher.hash_password(request_dto.new_password))
        )
