"""
auth/tokens.py -- Signed, time-bounded identity tokens.

Security design decisions:
  JWT via python-jose. Tokens are issued with HS256 and carry sub (the
      subject string), iat, nbf, exp and iss. Nothing else: no role, no
      profile data, so a token never goes stale except by expiring.

  Algorithm pinning: validate() reads the unverified header first and rejects
      any alg outside the HMAC family before the signature is checked. A token
      claiming "none" or an asymmetric alg never reaches key handling.

  Time checks run against the injected clock, not jose's internal clock, so
      the window is exactly [nbf, exp): a token presented at its exp second is
      already expired. Integer epoch seconds on both sides.

  The subject is opaque. Turning it into an account id is the caller's job
      (see auth/dependencies.py), and a failed coercion is an auth failure.

TokenService holds only immutable state (secret, validity, issuer, clock), so
one instance is shared by every request thread.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import JOSEError

from auth.models import TokenClaims
from core.errors import TokenError

logger = logging.getLogger("storefront.auth")

_SIGNING_ALGORITHM = "HS256"
_ACCEPTED_ALGORITHMS = ("HS256", "HS384", "HS512")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_ts(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class TokenService:
    """Issue and validate HMAC-signed JWTs.

    Usage:
        tokens = TokenService(secret=settings.secret_key, validity=timedelta(hours=24))
        raw = tokens.issue("42")
        tokens.validate(raw).subject   # "42"
    """

    def __init__(
        self,
        secret: str,
        validity: timedelta = timedelta(hours=24),
        issuer: str = "storefront",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        if validity <= timedelta(0):
            raise ValueError("token validity must be positive")
        self._secret = secret
        self._validity_seconds = int(validity.total_seconds())
        self._issuer = issuer
        self._clock = clock

    @property
    def validity_seconds(self) -> int:
        return self._validity_seconds

    def issue(self, subject: str) -> str:
        """Return a signed token for subject, valid from now for the configured duration."""
        now = int(self._clock().timestamp())
        claims = {
            "sub": subject,
            "iat": now,
            "nbf": now,
            "exp": now + self._validity_seconds,
            "iss": self._issuer,
        }
        try:
            token = jwt.encode(claims, self._secret, algorithm=_SIGNING_ALGORITHM)
        except JOSEError as exc:
            logger.error("Failed to sign token for subject %s: %s", subject, exc)
            raise TokenError("failed to sign token") from exc
        logger.debug("Token issued for subject %s", subject)
        return token

    def validate(self, token: str) -> TokenClaims:
        """Verify token and return its claims. Raises TokenError on any failure."""
        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as exc:
            raise TokenError("malformed token") from exc

        alg = header.get("alg")
        if alg not in _ACCEPTED_ALGORITHMS:
            raise TokenError(f"unexpected signing algorithm: {alg!r}")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=list(_ACCEPTED_ALGORITHMS),
                issuer=self._issuer,
                # Time window is checked below against the injected clock.
                options={"verify_exp": False, "verify_nbf": False},
            )
        except JOSEError as exc:
            raise TokenError(f"invalid token: {exc}") from exc

        try:
            iat = int(payload["iat"])
            nbf = int(payload["nbf"])
            exp = int(payload["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenError("token is missing time claims") from exc

        now = int(self._clock().timestamp())
        if now < nbf:
            raise TokenError("token is not yet valid")
        if now >= exp:
            raise TokenError("token has expired")

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenError("token has no subject")

        return TokenClaims(
            subject=subject,
            issued_at=_from_ts(iat),
            not_before=_from_ts(nbf),
            expires_at=_from_ts(exp),
        )
