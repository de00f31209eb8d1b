"""
catalog/service.py -- Ownership-scoped product operations.

Rules:
  - price must be strictly positive. The API model already enforces gt=0;
    the service checks again so no caller can persist a bad price.
  - Any authenticated caller may read any product by id.
  - Only the owner may update or delete. A missing product is NotFound, an
    existing product owned by someone else is Forbidden.
  - Updates are partial: None, "" and 0 mean "leave unchanged".

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from sqlalchemy.exc import IntegrityError

from catalog.models import Product, ProductPatch
from catalog.store import ProductStore
from core.errors import Forbidden, InvalidInput, NotFound

logger = logging.getLogger("storefront.catalog")


def _check_price(price: float) -> None:
    # `not price > 0` also rejects NaN.
    if not price > 0 or math.isinf(price):
        raise InvalidInput("price must be a positive number")


class ProductService:
    def __init__(self, store: ProductStore) -> None:
        self._store = store

    def create(self, owner_id: int, name: str, description: Optional[str], price: float) -> Product:
        """Persist a new product owned by owner_id and return the stored record."""
        name = (name or "").strip()
        if not name:
            raise InvalidInput("name is required")
        _check_price(price)

        product = Product(name=name, description=description or "", price=price, owner_id=owner_id)
        try:
            product_id = self._store.insert_product(product)
        except IntegrityError as exc:
            # Price is already validated, so the foreign key is what failed.
            logger.warning("Product rejected: owner %d does not exist", owner_id)
            raise NotFound(f"account {owner_id} not found") from exc

        created = self._store.find_product_by_id(product_id)
        if created is None:
            raise NotFound(f"product {product_id} vanished after insert")
        logger.info("Product %d created by account %d", created.id, owner_id)
        return created

    def get_by_id(self, product_id: int) -> Product:
        product = self._store.find_product_by_id(product_id)
        if product is None:
            raise NotFound(f"product {product_id} not found")
        return product

    def list_by_owner(self, owner_id: int) -> list[Product]:
        products = self._store.find_products_by_owner(owner_id)
        logger.debug("Listed %d products for account %d", len(products), owner_id)
        return products

    def update(self, product_id: int, caller_id: int, patch: ProductPatch) -> Product:
        """Apply the non-empty fields of patch to a product the caller owns."""
        self._owned_product(product_id, caller_id, action="update")

        fields: dict = {}
        if patch.name is not None and patch.name.strip():
            fields["name"] = patch.name.strip()
        if patch.description:
            fields["description"] = patch.description
        if patch.price is not None and patch.price != 0:
            _check_price(patch.price)
            fields["price"] = patch.price

        if fields and not self._store.update_product(product_id, caller_id, **fields):
            # Deleted between the ownership check and the write.
            raise NotFound(f"product {product_id} not found")

        updated = self.get_by_id(product_id)
        changed = ", ".join(sorted(fields)) or "no changes"
        logger.info("Product %d updated by account %d (%s)", product_id, caller_id, changed)
        return updated

    def delete(self, product_id: int, caller_id: int) -> None:
        """Hard-delete a product the caller owns."""
        self._owned_product(product_id, caller_id, action="delete")
        if not self._store.delete_product(product_id, caller_id):
            raise NotFound(f"product {product_id} not found")
        logger.info("Product %d deleted by account %d", product_id, caller_id)

    def _owned_product(self, product_id: int, caller_id: int, action: str) -> Product:
        product = self.get_by_id(product_id)
        if product.owner_id != caller_id:
            logger.warning(
                "Unauthorized attempt to %s product %d by account %d (owner %d)",
                action,
                product_id,
                caller_id,
                product.owner_id,
            )
            raise Forbidden(f"you are not allowed to {action} this product")
        return product
