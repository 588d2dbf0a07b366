from __future__ import annotations

import bcrypt

from tablebook.application.ports.security import PasswordHasher

# bcrypt only uses the first 72 bytes; newer releases reject longer input.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash_password(self, plain_password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
        except ValueError:
            # stored value is not a bcrypt hash
            return False
