"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; the API layer maps these to response models that omit the hash.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered identity.

    hashed_password is the bcrypt hash. It never leaves the service layer:
    api/models.AccountResponse has no field for it.

    id is None before the record is written to the database.
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of an identity token.

    subject is the opaque string the token was issued for. Callers that need
    the integer account id must coerce it themselves.
    """

    subject: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_in: int  # seconds
