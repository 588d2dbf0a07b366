from __future__ import annotations

from tablebook.application.dto.responses import AuthUserResponse, UserProfileResponse
from tablebook.domain.user.entities import User


def to_auth_user_response(user: User) -> AuthUserResponse:
    return AuthUserResponse(
        email=user.email,
        role=user.role.value,
        fullName=user.full_name,
        phone=user.phone,
    )


def to_user_profile_response(user: User) -> UserProfileResponse:
    return UserProfileResponse(fullName=user.full_name, email=user.email, phone=user.phone)
