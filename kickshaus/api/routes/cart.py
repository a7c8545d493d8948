"""Cart validation API routes."""

from fastapi import APIRouter

from kickshaus.api.deps import Cart
from kickshaus.schemas.cart import CartValidateRequest, CartValidationResponse

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post(
    "/validate",
    response_model=CartValidationResponse,
    summary="Validate cart",
    description="Re-prices a cart against the catalog and reports stock per product. Client prices are ignored.",
)
async def validate_cart(data: CartValidateRequest, service: Cart) -> CartValidationResponse:
    """Validate a cart against current catalog prices and stock.

    Args:
        data: Cart lines to validate.
        service: Cart service.

    Returns:
        CartValidationResponse: Itemized cart with authoritative totals.
    """
    return await service.validate_cart(data.items)
