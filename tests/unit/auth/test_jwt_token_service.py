from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tablebook.application.ports.security import EXPIRED, MALFORMED, InvalidToken
from tablebook.infrastructure.auth.jwt_tokens import JwtTokenService

SECRET = "unit-test-secret-with-enough-length-0001"
ISSUED_AT = datetime(2025, 11, 7, 12, 0, tzinfo=timezone.utc)


class MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_issue_then_verify_returns_identity() -> None:
    service = JwtTokenService(secret=SECRET, ttl_seconds=3600, clock=lambda: ISSUED_AT)
    token = service.issue("alice@example.com")
    assert service.verify(token) == "alice@example.com"


def test_token_carries_standard_claims() -> None:
    service = JwtTokenService(secret=SECRET, ttl_seconds=600, clock=lambda: ISSUED_AT)
    payload = jwt.decode(
        service.issue("alice@example.com"),
        SECRET,
        algorithms=["HS256"],
        options={"verify_exp": False},
    )
    assert payload["sub"] == "alice@example.com"
    assert payload["exp"] - payload["iat"] == 600


def test_token_from_other_key_is_malformed() -> None:
    other = JwtTokenService(secret="another-secret-with-enough-length-0002", clock=lambda: ISSUED_AT)
    service = JwtTokenService(secret=SECRET, clock=lambda: ISSUED_AT)
    assert service.verify(other.issue("alice@example.com")) == InvalidToken(reason=MALFORMED)


def test_expired_token_is_rejected() -> None:
    clock = MutableClock(ISSUED_AT)
    service = JwtTokenService(secret=SECRET, ttl_seconds=60, clock=clock)
    token = service.issue("alice@example.com")

    clock.now = ISSUED_AT + timedelta(seconds=59)
    assert service.verify(token) == "alice@example.com"

    clock.now = ISSUED_AT + timedelta(seconds=61)
    assert service.verify(token) == InvalidToken(reason=EXPIRED)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "not-a-jwt-at-all....", "\x00\x01"])
def test_garbage_is_malformed_and_never_raises(garbage: str) -> None:
    service = JwtTokenService(secret=SECRET, clock=lambda: ISSUED_AT)
    assert service.verify(garbage) == InvalidToken(reason=MALFORMED)


def test_token_without_subject_is_malformed() -> None:
    token = jwt.encode(
        {"exp": int((ISSUED_AT + timedelta(hours=1)).timestamp())}, SECRET, algorithm="HS256"
    )
    service = JwtTokenService(secret=SECRET, clock=lambda: ISSUED_AT)
    assert service.verify(token) == InvalidToken(reason=MALFORMED)


def test_tampered_payload_is_malformed() -> None:
    service = JwtTokenService(secret=SECRET, clock=lambda: ISSUED_AT)
    header, _, signature = service.issue("alice@example.com").split(".")
    forged_payload = jwt.encode(
        {"sub": "admin@example.com", "exp": 4102444800}, "x", algorithm="HS256"
    ).split(".")[1]
    assert service.verify(f"{header}.{forged_payload}.{signature}") == InvalidToken(
        reason=MALFORMED
    )


def test_rejects_empty_secret() -> None:
    with pytest.raises(ValueError):
        JwtTokenService(secret="")
