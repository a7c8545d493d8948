"""Zero-trust cart validation service."""

import logging
from decimal import Decimal
from uuid import UUID

from kickshaus.api.middleware.error_handler import BadRequestError
from kickshaus.core.config import get_settings
from kickshaus.schemas.cart import CartItem, CartValidationResponse, ValidatedCartItem
from kickshaus.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

FIAT_QUANTUM = Decimal("0.01")
UNKNOWN_PRODUCT_NAME = "Unknown Product"


def aggregate_cart_items(items: list[CartItem]) -> list[CartItem]:
    """Combine lines for the same product, summing quantities.

    First-occurrence order is preserved.
    """
    quantities: dict[UUID, int] = {}
    for item in items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return [CartItem(product_id=product_id, quantity=quantity) for product_id, quantity in quantities.items()]


class CartService:
    """Re-prices and re-stocks carts against the catalog."""

    def __init__(self, catalog: CatalogService | None = None) -> None:
        """Initialize cart service.

        Args:
            catalog: Optional catalog collaborator for testing.
        """
        self.catalog = catalog or CatalogService()
        self.settings = get_settings()

    async def validate_cart(self, items: list[CartItem]) -> CartValidationResponse:
        """Validate cart items against current catalog prices and stock.

        Client-supplied prices are never read. Unknown or non-purchasable
        products are reported as unavailable lines instead of aborting, so
        the caller can show exactly which products block checkout.

        Args:
            items: Client-submitted cart lines.

        Returns:
            CartValidationResponse: Itemized, re-priced cart.

        Raises:
            BadRequestError: If the cart is empty.
        """
        if not items:
            raise BadRequestError("Cart is empty")

        lines = aggregate_cart_items(items)
        prices = await self.catalog.get_prices([str(line.product_id) for line in lines])

        validated: list[ValidatedCartItem] = []
        for line in lines:
            product_id = str(line.product_id)
            product = prices.get(product_id)
            if product is None or not product["purchasable"]:
                validated.append(
                    ValidatedCartItem(
                        product_id=product_id,
                        name=UNKNOWN_PRODUCT_NAME,
                        quantity=line.quantity,
                        unit_price=Decimal("0"),
                        subtotal=Decimal("0"),
                        in_stock=False,
                        available_stock=0,
                    )
                )
                continue

            unit_price = product["price"].quantize(FIAT_QUANTUM)
            validated.append(
                ValidatedCartItem(
                    product_id=product_id,
                    name=product["name"],
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=unit_price * line.quantity,
                    in_stock=product["stock"] >= line.quantity,
                    available_stock=product["stock"],
                )
            )

        total_fiat = sum(
            (item.subtotal for item in validated if item.in_stock and item.unit_price > 0),
            Decimal("0"),
        ).quantize(FIAT_QUANTUM)

        result = CartValidationResponse(
            success=all(item.in_stock and item.unit_price > 0 for item in validated),
            items=validated,
            total_fiat=total_fiat,
            currency=self.settings.store_currency,
        )

        if not result.success:
            logger.info("Cart validation blocked by products: %s", ", ".join(result.blocking_product_ids))
        return result
