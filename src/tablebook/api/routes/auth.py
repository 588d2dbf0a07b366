from __future__ import annotations

import os

from fastapi import APIRouter, Depends, Response

from tablebook.api.dependencies import (
    Repositories,
    get_password_hasher,
    get_repositories,
    get_token_service,
    require_identity,
)
from tablebook.api.middleware.auth import TOKEN_COOKIE, NotAuthenticatedError
from tablebook.application.dto.requests import LoginRequest, RegisterRequest
from tablebook.application.dto.responses import AuthUserResponse, MessageResponse
from tablebook.application.ports.security import PasswordHasher, TokenService
from tablebook.application.use_cases.authenticate_user import AuthenticateUser
from tablebook.application.use_cases.register_user import RegisterUser
from tablebook.application.use_cases.users import GetCurrentUser, UserNotFoundError

router = APIRouter(prefix="/auth", tags=["auth"])


def _cookie_secure() -> bool:
    return os.getenv("AUTH_COOKIE_SECURE", "false").strip().lower() in {"1", "true", "yes"}


def set_token_cookie(response: Response, token_service: TokenService, identity: str) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token_service.issue(identity),
        max_age=token_service.ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_cookie_secure(),
    )


@router.post("/register", response_model=AuthUserResponse)
def register(
    request_dto: RegisterRequest,
    response: Response,
    repositories: Repositories = Depends(get_repositories),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthUserResponse:
    user = RegisterUser(
        user_repository=repositories.users,
        password_hasher=password_hasher,
    ).execute(request_dto=request_dto)
    set_token_cookie(response, token_service, user.email)
    return user


@router.post("/login", response_model=AuthUserResponse)
def login(
    request_dto: LoginRequest,
    response: Response,
    repositories: Repositories = Depends(get_repositories),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthUserResponse:
    user = AuthenticateUser(
        user_repository=repositories.users,
        password_hasher=password_hasher,
    ).execute(request_dto=request_dto)
    set_token_cookie(response, token_service, user.email)
    return user


@router.get("/auth_check", response_model=AuthUserResponse)
def auth_check(
    identity: str = Depends(require_identity),
    repositories: Repositories = Depends(get_repositories),
) -> AuthUserResponse:
    try:
        return GetCurrentUser(user_repository=repositories.users).execute(identity=identity)
    except UserNotFoundError as exc:
        raise NotAuthenticatedError("authentication required") from exc


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    response.delete_cookie(key=TOKEN_COOKIE, path="/", httponly=True, samesite="lax")
    return MessageResponse(message="logged out")
