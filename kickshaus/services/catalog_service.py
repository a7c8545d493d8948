"""Read-only catalog lookups used for zero-trust pricing."""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from supabase import Client

from kickshaus.core.supabase import get_supabase_client
from kickshaus.models.product import PURCHASABLE_STATUS, ProductPrice

logger = logging.getLogger(__name__)


class CatalogService:
    """Queries authoritative price and stock from the products table.

    Every call hits the database; nothing is cached between calls.
    """

    def __init__(self, supabase_client: Client | None = None) -> None:
        """Initialize catalog service.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self.client = supabase_client or get_supabase_client()

    async def get_prices(self, product_ids: list[str]) -> dict[str, ProductPrice]:
        """Get price and stock for purchasable products.

        Args:
            product_ids: Canonical (lower-case) product UUIDs to look up.

        Returns:
            dict: Mapping of canonical product id to price snapshot. Unknown or
            non-purchasable products are absent.
        """
        if not product_ids:
            return {}

        response = (
            self.client.table("products")
            .select("id, name, base_price, stock, status")
            .in_("id", product_ids)
            .eq("status", PURCHASABLE_STATUS)
            .execute()
        )

        rows: list[dict[str, Any]] = response.data or []
        prices: dict[str, ProductPrice] = {}
        for row in rows:
            prices[str(UUID(str(row["id"])))] = ProductPrice(
                name=row["name"],
                price=Decimal(str(row["base_price"])),
                stock=int(row["stock"]),
                purchasable=row.get("status") == PURCHASABLE_STATUS,
            )

        logger.debug("Catalog lookup: %d requested, %d purchasable", len(product_ids), len(prices))
        return prices
