from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

EXPIRED = "expired"
MALFORMED = "malformed"


@dataclass(frozen=True)
class InvalidToken:
    reason: str


class TokenService(Protocol):
    @property
    def ttl_seconds(self) -> int: ...

    def issue(self, identity: str) -> str: ...

    def verify(self, token: str) -> str | InvalidToken: ...


class PasswordHasher(Protocol):
    def hash_password(self, plain_password: str) -> str: ...

    def verify_password(self, plain_password: str, hashed_password: str) -> bool: ...
