"""
auth/store.py -- SQLAlchemy Core persistence for accounts.

Pattern: Repository + Data Mapper (same as catalog/store.py).
AccountStore is the repository; _row_to_account is the mapper. Services and
routes never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) and UNIQUE(username) are enforced by the table definition in
  core/database.py. insert_account() lets IntegrityError propagate so the
  service can report a Conflict even when two registrations race past the
  email pre-check.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.engine import Engine

from auth.models import Account
from core.database import accounts

logger = logging.getLogger("storefront.db")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AccountStore:
    """Repository for Account records.

    Usage:
        store = AccountStore(engine)
        account_id = store.insert_account(Account(username="ann", email="ann@x.io", hashed_password=h))
        store.find_account_by_email("ann@x.io")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def insert_account(self, account: Account) -> int:
        """Insert a new account and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email or username is taken.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                accounts.insert().values(
                    username=account.username,
                    email=account.email,
                    hashed_password=account.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            account_id = result.inserted_primary_key[0]
        logger.info("Account %d inserted", account_id)
        return account_id

    def find_account_by_email(self, email: str) -> Account | None:
        """Look up an account by exact (already normalized) email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(accounts.select().where(accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_account_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(accounts.select().where(accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
