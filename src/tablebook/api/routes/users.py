from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from tablebook.api.dependencies import (
    Repositories,
    get_password_hasher,
    get_repositories,
    get_token_service,
    require_identity,
)
from tablebook.api.middleware.auth import NotAuthenticatedError
from tablebook.api.routes.auth import set_token_cookie
from tablebook.application.dto.requests import ChangePasswordRequest, UpdateProfileRequest
from tablebook.application.dto.responses import MessageResponse, UserProfileResponse
from tablebook.application.ports.security import PasswordHasher, TokenService
from tablebook.application.use_cases.user_profile import ChangePassword, GetProfile, UpdateProfile
from tablebook.application.use_cases.users import UserNotFoundError
from tablebook.domain.user.entities import normalize_email

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/me", response_model=UserProfileResponse)
def get_profile(
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
) -> UserProfileResponse:
    try:
        return GetProfile(user_repository=repositories.users).execute(identity=identity)
    except UserNotFoundError as exc:
        raise NotAuthenticatedError("authentication required") from exc


@router.put("/me", status_code=status.HTTP_204_NO_CONTENT)
def update_profile(
    request_dto: UpdateProfileRequest,
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
    token_service: TokenService = Depends(get_token_service),
) -> Response:
    try:
        profile = UpdateProfile(user_repository=repositories.users).execute(
            identity=identity, request_dto=request_dto
        )
    except UserNotFoundError as exc:
        raise NotAuthenticatedError("authentication required") from exc

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    # The token subject is the email; keep the session valid after a change.
    if profile.email != normalize_email(identity):
        set_token_cookie(response, token_service, profile.email)
    return response


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    request_dto: ChangePasswordRequest,
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    try:
        ChangePassword(
            user_repository=repositories.users,
            password_hasher=password_hasher,
        ).execute(identity=identity, request_dto=request_dto)
    except UserNotFoundError as exc:
        raise NotAuthenticatedError("authentication required") from exc
    return MessageResponse(message="password changed")
