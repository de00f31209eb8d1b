"""Unit tests for auth/tokens.py -- token issue and validate.

Every test drives TokenService with a FakeClock so expiry boundaries are
exact rather than dependent on wall-clock timing.

Covers:
- issued token validates immediately and returns the subject
- expiry boundary: valid one second before exp, invalid exactly at exp
- not-before: a token from the future is rejected
- wrong secret, corrupted signature, garbage input -> TokenError
- algorithm pinning: "none" and non-HMAC algs rejected, HMAC family accepted
- wrong issuer and missing subject -> TokenError
"""

from __future__ import annotations

import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from auth.tokens import TokenService
from conftest import TEST_SECRET, FakeClock
from core.errors import TokenError


def _b64url(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _claims(clock: FakeClock, **overrides) -> dict:
    now = int(clock().timestamp())
    claims = {"sub": "42", "iat": now, "nbf": now, "exp": now + 3600, "iss": "storefront"}
    claims.update(overrides)
    return claims


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_issue_then_validate_returns_subject(tokens: TokenService) -> None:
    claims = tokens.validate(tokens.issue("42"))
    assert claims.subject == "42"
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)
    assert claims.not_before == claims.issued_at


def test_token_valid_just_before_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("7")
    clock.advance(hours=24, seconds=-1)
    assert tokens.validate(token).subject == "7"


def test_token_invalid_exactly_at_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("7")
    clock.advance(hours=24)
    with pytest.raises(TokenError, match="expired"):
        tokens.validate(token)


def test_token_invalid_after_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("7")
    clock.advance(days=3)
    with pytest.raises(TokenError):
        tokens.validate(token)


def test_token_not_yet_valid(clock: FakeClock) -> None:
    future = FakeClock(clock.now + timedelta(minutes=5))
    issuer = TokenService(secret=TEST_SECRET, clock=future)
    validator = TokenService(secret=TEST_SECRET, clock=clock)
    with pytest.raises(TokenError, match="not yet valid"):
        validator.validate(issuer.issue("7"))


def test_custom_validity_is_honoured(clock: FakeClock) -> None:
    short = TokenService(secret=TEST_SECRET, validity=timedelta(minutes=1), clock=clock)
    token = short.issue("1")
    assert short.validity_seconds == 60
    clock.advance(seconds=60)
    with pytest.raises(TokenError):
        short.validate(token)


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------


def test_token_signed_with_other_secret_rejected(tokens: TokenService, clock: FakeClock) -> None:
    other = TokenService(secret="a-completely-different-secret-of-32+chars", clock=clock)
    with pytest.raises(TokenError):
        tokens.validate(other.issue("42"))


def test_corrupted_signature_rejected(tokens: TokenService) -> None:
    token = tokens.issue("42")
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    with pytest.raises(TokenError):
        tokens.validate(f"{header}.{payload}.{flipped}")


def test_tampered_payload_rejected(tokens: TokenService, clock: FakeClock) -> None:
    header, _payload, signature = tokens.issue("42").split(".")
    forged = _b64url(_claims(clock, sub="1"))
    with pytest.raises(TokenError):
        tokens.validate(f"{header}.{forged}.{signature}")


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b", "a.b.c", "...."])
def test_garbage_rejected(tokens: TokenService, garbage: str) -> None:
    with pytest.raises(TokenError):
        tokens.validate(garbage)


# ---------------------------------------------------------------------------
# Algorithm pinning
# ---------------------------------------------------------------------------


def test_alg_none_rejected(tokens: TokenService, clock: FakeClock) -> None:
    unsigned = f"{_b64url({'alg': 'none', 'typ': 'JWT'})}.{_b64url(_claims(clock))}."
    with pytest.raises(TokenError, match="algorithm"):
        tokens.validate(unsigned)


def test_asymmetric_alg_header_rejected(tokens: TokenService, clock: FakeClock) -> None:
    forged = f"{_b64url({'alg': 'RS256', 'typ': 'JWT'})}.{_b64url(_claims(clock))}.c2lnbmF0dXJl"
    with pytest.raises(TokenError, match="algorithm"):
        tokens.validate(forged)


def test_other_hmac_alg_accepted(tokens: TokenService, clock: FakeClock) -> None:
    token = jwt.encode(_claims(clock), TEST_SECRET, algorithm="HS512")
    assert tokens.validate(token).subject == "42"


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


def test_wrong_issuer_rejected(tokens: TokenService, clock: FakeClock) -> None:
    token = jwt.encode(_claims(clock, iss="someone-else"), TEST_SECRET, algorithm="HS256")
    with pytest.raises(TokenError):
        tokens.validate(token)


def test_missing_subject_rejected(tokens: TokenService, clock: FakeClock) -> None:
    claims = _claims(clock)
    del claims["sub"]
    token = jwt.encode(claims, TEST_SECRET, algorithm="HS256")
    with pytest.raises(TokenError):
        tokens.validate(token)


def test_missing_expiry_rejected(tokens: TokenService, clock: FakeClock) -> None:
    claims = _claims(clock)
    del claims["exp"]
    token = jwt.encode(claims, TEST_SECRET, algorithm="HS256")
    with pytest.raises(TokenError):
        tokens.validate(token)


def test_constructor_rejects_empty_secret() -> None:
    with pytest.raises(ValueError):
        TokenService(secret="")


def test_constructor_rejects_non_positive_validity() -> None:
    with pytest.raises(ValueError):
        TokenService(secret=TEST_SECRET, validity=timedelta(0))
