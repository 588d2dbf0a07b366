from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tablebook.api.middleware.auth import NotAuthenticatedError
from tablebook.api.middleware.request_id import get_request_id
from tablebook.application.use_cases.authenticate_user import BadCredentialsError
from tablebook.application.use_cases.book_reservation import (
    ReservationWindowError,
    TableAlreadyReservedError,
    TableNotFoundError,
    UserAlreadyReservedError,
)
from tablebook.application.use_cases.cancel_reservation import ReservationNotFoundError
from tablebook.application.use_cases.register_user import EmailTakenError
from tablebook.application.use_cases.user_profile import InvalidPasswordError
from tablebook.application.use_cases.users import AccessDeniedError, UserNotFoundError

logger = logging.getLogger(__name__)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": jsonable_encoder(validation_exc.errors())},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return _error_response(
        status_code=500,
        code="INTERNAL_ERROR",
        message="internal server error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (NotAuthenticatedError, 401, "UNAUTHORIZED"),
        (AccessDeniedError, 403, "FORBIDDEN"),
        (UserNotFoundError, 404, "USER_NOT_FOUND"),
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (ReservationNotFoundError, 404, "RESERVATION_NOT_FOUND"),
        (UserAlreadyReservedError, 409, "USER_ALREADY_RESERVED"),
        (TableAlreadyReservedError, 409, "TABLE_ALREADY_RESERVED"),
        (ReservationWindowError, 400, "INVALID_RESERVATION_WINDOW"),
        (EmailTakenError, 409, "EMAIL_TAKEN"),
        (BadCredentialsError, 401, "BAD_CREDENTIALS"),
        (InvalidPasswordError, 400, "INVALID_PASSWORD"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
