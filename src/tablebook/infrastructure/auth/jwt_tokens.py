from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

import jwt

from tablebook.application.metrics.reservations import record_token_rejected
from tablebook.application.ports.security import EXPIRED, MALFORMED, InvalidToken, TokenService

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600
_DEV_SECRET = "tablebook-dev-secret-change-me-0123456789"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenService(TokenService):
    """HS256 identity tokens with ``sub``, ``iat`` and ``exp`` claims.

    ``verify`` never raises: any failure comes back as ``InvalidToken`` with reason
    ``expired`` or ``malformed``. Expiry is checked against the injected clock.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        if ttl_seconds <= 0:
            raise ValueError("token ttl must be positive")
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, identity: str) -> str:
        issued_at = self._clock()
        payload = {
            "sub": identity,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=self._ttl_seconds)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str | InvalidToken:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"], "verify_exp": False},
            )
        except jwt.PyJWTError as exc:
            return self._reject(MALFORMED, exc)

        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            return self._reject(MALFORMED)
        if not isinstance(expires_at, (int, float)):
            return self._reject(MALFORMED)
        if expires_at <= self._clock().timestamp():
            return self._reject(EXPIRED)
        return subject

    def _reject(self, reason: str, exc: Exception | None = None) -> InvalidToken:
        record_token_rejected(reason)
        logger.info(
            "token_rejected",
            extra={"reason": reason, "error": type(exc).__name__ if exc else None},
        )
        return InvalidToken(reason=reason)


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if secret:
        return secret
    if os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}:
        return _DEV_SECRET
    raise RuntimeError("JWT_SECRET is not set")


def _jwt_ttl_seconds() -> int:
    return int(os.getenv("JWT_TTL_SECONDS", str(DEFAULT_TTL_SECONDS)))


@lru_cache(maxsize=8)
def _build_token_service(secret: str, ttl_seconds: int) -> JwtTokenService:
    return JwtTokenService(secret=secret, ttl_seconds=ttl_seconds)


def get_token_service() -> JwtTokenService:
    return _build_token_service(_jwt_secret(), _jwt_ttl_seconds())
