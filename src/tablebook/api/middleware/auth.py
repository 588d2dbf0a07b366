from __future__ import annotations

from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tablebook.application.ports.security import InvalidToken, TokenService

TOKEN_COOKIE = "token"
_BEARER_PREFIX = "bearer "

identity_context: ContextVar[str | None] = ContextVar("identity", default=None)


class NotAuthenticatedError(Exception):
    pass


def get_current_identity() -> str | None:
    return identity_context.get()


def extract_token(request: Request) -> str | None:
    """Cookie first, then ``Authorization: Bearer``."""
    cookie_token = request.cookies.get(TOKEN_COOKIE)
    if cookie_token:
        return cookie_token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith(_BEARER_PREFIX):
        bearer_token = header[len(_BEARER_PREFIX) :].strip()
        return bearer_token or None
    return None


def resolve_identity(token_service: TokenService, token: str | None) -> str | None:
    if token is None:
        return None
    result = token_service.verify(token)
    if isinstance(result, InvalidToken):
        return None
    return result


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """Attach the caller's identity to the request; never rejects a request itself.

    Missing and invalid tokens both leave the request anonymous. Protected routes
    decide through ``require_identity`` / ``require_admin``.
    """

    async def dispatch(self, request: Request, call_next):
        token_service: TokenService = request.app.state.token_service
        identity = resolve_identity(token_service, extract_token(request))
        request.state.identity = identity
        context_token = identity_context.set(identity)
        try:
            return await call_next(request)
        finally:
            identity_context.reset(context_token)
