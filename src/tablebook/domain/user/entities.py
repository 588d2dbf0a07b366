from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from tablebook.domain.common.ids import UserId


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class User:
    user_id: UserId
    email: str
    password_hash: str
    role: Role
    full_name: str
    phone: str | None = None

    def __post_init__(self) -> None:
        if self.email != normalize_email(self.email):
            raise ValueError("email must be normalized (trimmed, lowercase)")
        if not self.email:
            raise ValueError("email must not be empty")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def with_profile(
        self,
        *,
        full_name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> User:
        """Return a copy with every non-blank field applied; blank values are ignored."""
        changes: dict[str, str] = {}
        if full_name and full_name.strip():
            changes["full_name"] = full_name.strip()
        if email and email.strip():
            changes["email"] = normalize_email(email)
        if phone and phone.strip():
            changes["phone"] = phone.strip()
        return replace(self, **changes)

    def with_password_hash(self, password_hash: str) -> User:
        return replace(self, password_hash=password_hash)
