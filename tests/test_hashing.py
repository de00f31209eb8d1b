"""Unit tests for auth/hashing.py -- bcrypt hash and verify.

Covers:
- hash() never returns the plaintext and salts every call
- verify() accepts the right password and rejects a wrong one with False
- verify() raises HashingError on a malformed stored hash
- passwords longer than bcrypt's 72-byte window hash and verify consistently
"""

import pytest

from auth.hashing import PasswordHasher
from core.errors import HashingError


def test_hash_is_not_plaintext(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("correct horse")
    assert hashed != "correct horse"
    assert hashed.startswith("$2")


def test_hash_is_salted(hasher: PasswordHasher) -> None:
    assert hasher.hash("same password") != hasher.hash("same password")


def test_hash_uses_configured_rounds() -> None:
    hashed = PasswordHasher(rounds=5).hash("pw")
    # bcrypt format: $2b$<rounds>$<salt+hash>
    assert hashed.split("$")[2] == "05"


def test_verify_correct_password(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("s3cret!")
    assert hasher.verify("s3cret!", hashed) is True


def test_verify_wrong_password_returns_false(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("s3cret!")
    assert hasher.verify("S3cret!", hashed) is False


def test_verify_malformed_hash_raises(hasher: PasswordHasher) -> None:
    with pytest.raises(HashingError):
        hasher.verify("anything", "not-a-bcrypt-hash")


def test_long_password_round_trips(hasher: PasswordHasher) -> None:
    long_pw = "x" * 100
    hashed = hasher.hash(long_pw)
    assert hasher.verify(long_pw, hashed) is True
    # Only the first 72 bytes count, same as bcrypt itself.
    assert hasher.verify("x" * 72, hashed) is True
    assert hasher.verify("x" * 71, hashed) is False
