"""
auth/hashing.py -- One-way password hashing with bcrypt.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection builds a password longer than 72 bytes, which bcrypt 4.x rejects.

bcrypt only ever considers the first 72 bytes of a password. Newer bcrypt
releases raise on longer input instead of truncating silently, so both hash()
and verify() truncate explicitly to keep behaviour identical across versions.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import bcrypt

from core.errors import HashingError

_BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """bcrypt hash/verify with a fixed cost factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("s3cret")
        hasher.verify("s3cret", stored)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a salted bcrypt hash of plaintext."""
        try:
            hashed = bcrypt.hashpw(_encode(plaintext), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, OSError) as exc:
            raise HashingError(f"failed to hash password: {exc}") from exc
        return hashed.decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return True if plaintext matches hashed.

        A mismatch is False, not an error. A stored hash bcrypt cannot parse
        raises HashingError -- that is corrupted data, not a bad password.
        """
        try:
            return bcrypt.checkpw(_encode(plaintext), hashed.encode("utf-8"))
        except ValueError as exc:
            raise HashingError("stored credential hash is malformed") from exc
