"""
catalog/store.py -- SQLAlchemy Core persistence for products.

Pattern: Repository + Data Mapper (same as auth/store.py).

IDOR guard: update_product() and delete_product() take the owner id and put
it in the WHERE clause. The service checks ownership first to tell NotFound
from Forbidden, but the write itself only succeeds if the row still belongs
to the caller, so a check-then-write race cannot touch someone else's row.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.engine import Engine

from catalog.models import Product
from core.database import products

logger = logging.getLogger("storefront.db")

# Columns a patch may touch. owner_id and timestamps are never caller-supplied.
_MUTABLE_FIELDS = frozenset({"name", "description", "price"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductStore:
    """Repository for Product records."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def insert_product(self, product: Product) -> int:
        """Insert a product and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if owner_id references no account
        or price violates the CHECK constraint.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                products.insert().values(
                    name=product.name,
                    description=product.description,
                    price=product.price,
                    owner_id=product.owner_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            product_id = result.inserted_primary_key[0]
        logger.info("Product %d inserted for owner %d", product_id, product.owner_id)
        return product_id

    def find_product_by_id(self, product_id: int) -> Product | None:
        with self.engine.connect() as conn:
            row = conn.execute(products.select().where(products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def find_products_by_owner(self, owner_id: int) -> list[Product]:
        """Return every product owned by owner_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                products.select().where(products.c.owner_id == owner_id).order_by(products.c.id)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, owner_id: int, /, **fields) -> bool:
        """Update name/description/price on a product owned by owner_id.

        Returns True if a row was updated, False if no product with that id
        belongs to owner_id. Unknown field names raise ValueError.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown product fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                products.update()
                .where((products.c.id == product_id) & (products.c.owner_id == owner_id))
                .values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_product(self, product_id: int, owner_id: int) -> bool:
        """Permanently delete a product owned by owner_id. Returns True if deleted."""
        with self.engine.connect() as conn:
            result = conn.execute(
                products.delete().where((products.c.id == product_id) & (products.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description or "",
        price=row.price,
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
