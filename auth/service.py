"""
auth/service.py -- Registration, login and profile lookup.

AccountService composes the three auth leaves: AccountStore for persistence,
PasswordHasher for credentials, TokenService for identity tokens. Each call is
a single request/response; the service holds no mutable state.

Login timing: bcrypt runs on every attempt. When the email is unknown the
password is checked against a dummy hash computed once at construction, so
"no such account" and "wrong password" cost the same and both raise the same
InvalidCredentials.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.hashing import PasswordHasher
from auth.models import Account, IssuedToken
from auth.store import AccountStore
from auth.tokens import TokenService
from core.errors import Conflict, InvalidCredentials, InvalidInput, NotFound

logger = logging.getLogger("storefront.auth")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AccountService:
    def __init__(self, store: AccountStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._dummy_hash = hasher.hash("storefront_timing_dummy")

    def register(self, username: str, email: str, password: str) -> Account:
        """Create a new account. Raises Conflict if the email or username is taken.

        The email lookup gives a clean error for the common case. The unique
        constraints catch the case where a concurrent registration wins the
        race between lookup and insert.
        """
        username = (username or "").strip()
        email = normalize_email(email)
        if not username or not email or not password:
            raise InvalidInput("username, email and password are required")

        if self._store.find_account_by_email(email) is not None:
            logger.warning("Registration rejected: email already registered (%s)", email)
            raise Conflict("An account with this email already exists.")

        account = Account(
            username=username,
            email=email,
            hashed_password=self._hasher.hash(password),
        )
        try:
            account_id = self._store.insert_account(account)
        except IntegrityError as exc:
            logger.warning("Registration rejected by unique constraint (%s)", email)
            raise Conflict("An account with this email or username already exists.") from exc

        created = self._store.find_account_by_id(account_id)
        if created is None:
            raise NotFound(f"account {account_id} vanished after insert")
        logger.info("Account %d registered (%s)", created.id, created.email)
        return created

    def login(self, email: str, password: str) -> IssuedToken:
        """Verify credentials and issue a token keyed on the account id."""
        email = normalize_email(email)
        account = self._store.find_account_by_email(email)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.verify(password, self._dummy_hash)
            logger.info("Login failed: unknown email (%s)", email)
            raise InvalidCredentials()
        if not self._hasher.verify(password, account.hashed_password):
            logger.info("Login failed: wrong password for account %d", account.id)
            raise InvalidCredentials()

        token = self._tokens.issue(str(account.id))
        logger.info("Account %d logged in", account.id)
        return IssuedToken(token=token, expires_in=self._tokens.validity_seconds)

    def get_profile(self, account_id: int) -> Account:
        account = self._store.find_account_by_id(account_id)
        if account is None:
            raise NotFound(f"account {account_id} not found")
        return account
