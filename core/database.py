"""
core/database.py -- Engine construction and schema for the Storefront store.

Both tables live on one MetaData so the products.owner_id foreign key can
reference accounts.id. The repositories (auth/store.py, catalog/store.py)
import the Table objects from here and never touch the engine setup.

Integrity is enforced by the database, not by read-then-write checks:
  - UNIQUE(email), UNIQUE(username) on accounts
  - FOREIGN KEY products.owner_id -> accounts.id
  - CHECK (price > 0) on products

SQLite does not enforce foreign keys unless asked, so every new connection
gets PRAGMA foreign_keys=ON alongside WAL mode.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or catalog/.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("storefront.db")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("price", Float, nullable=False),
    Column("owner_id", Integer, ForeignKey("accounts.id"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("price > 0", name="ck_products_price_positive"),
)


# ---------------------------------------------------------------------------
# SQLite connection pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Engine lifecycle
# ---------------------------------------------------------------------------


def create_db_engine(db_url: str, timeout: float = 10.0) -> Engine:
    """Build an Engine for db_url.

    timeout bounds how long a statement waits on a locked database (SQLite
    busy timeout) or on connection establishment (other drivers).
    """
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = timeout
    elif db_url.startswith("postgresql"):
        connect_args["connect_timeout"] = int(timeout)
    engine = create_engine(db_url, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def init_schema(engine: Engine) -> None:
    """Create all tables if they do not exist. Safe to call on every startup."""
    metadata.create_all(engine)
    logger.info("Schema ready (%s)", engine.url.render_as_string(hide_password=True))


def ping(engine: Engine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database ping failed")
        return False
    return True
