"""Catalog product type definitions.

The catalog is owned by the product management service; the settlement
engine only reads prices and stock and decrements stock on confirmation.
"""

from decimal import Decimal
from typing import Literal, TypedDict


ProductStatus = Literal["pending_approval", "live", "rejected"]

# Only live products may be purchased
PURCHASABLE_STATUS: ProductStatus = "live"


class ProductPrice(TypedDict):
    """Authoritative price and stock snapshot for one product."""

    name: str
    price: Decimal
    stock: int
    purchasable: bool
