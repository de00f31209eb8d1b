"""
core/errors.py -- Error kinds raised by the Storefront service layer.

Every failure the services can signal is a ServiceError subclass carrying a
machine-readable code. Services raise them verbatim and never retry; the API
layer owns the translation to HTTP status codes (see api/main.py).

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or catalog/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for all domain errors. Terminal for the current request."""

    code = "service_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HashingError(ServiceError):
    """The credential subsystem malfunctioned (bad stored hash, bcrypt failure)."""

    code = "hashing_error"


class TokenError(ServiceError):
    """Token is malformed, expired, not yet valid, or signed incorrectly."""

    code = "invalid_token"


class Conflict(ServiceError):
    """A unique field (email, username) is already taken."""

    code = "conflict"


class InvalidCredentials(ServiceError):
    """Login failed. Deliberately does not say whether the account exists."""

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class NotFound(ServiceError):
    code = "not_found"


class Forbidden(ServiceError):
    """The caller does not own the resource it is trying to mutate."""

    code = "forbidden"


class InvalidInput(ServiceError):
    """A value violates a domain invariant (e.g. non-positive price)."""

    code = "invalid_input"
