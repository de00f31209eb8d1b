"""
catalog/models.py -- Domain dataclasses for the product catalog.

These are pure data containers with zero logic. Ownership and validation
rules live in catalog/service.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Product:
    """A product owned by exactly one account.

    owner_id is fixed at creation; no operation changes it.
    id is None before the record is written to the database.
    """

    name: str
    price: float
    owner_id: int
    description: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class ProductPatch:
    """Partial update for a product.

    A field that is None or empty (0 for price) means "leave unchanged", never
    "clear". There is no way to blank a description through a patch.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
