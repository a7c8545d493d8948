"""Payment API routes for Solana Pay and Paystack checkout."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from kickshaus.api.deps import CurrentUser, Settlement
from kickshaus.schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaystackInitializeRequest,
    SolPriceResponse,
    VerifyPaymentResponse,
)
from kickshaus.services.price_oracle_service import PriceOracleService, get_price_oracle

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-order",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a Solana Pay order",
    description="Validates the cart, quotes the SOL amount and returns a Solana Pay transfer request.",
)
async def create_order(
    data: CreateOrderRequest,
    user: CurrentUser,
    service: Settlement,
) -> CreateOrderResponse:
    """Create a pending crypto order.

    Args:
        data: Cart lines and optional delivery details.
        user: The authenticated customer.
        service: Settlement service.

    Returns:
        CreateOrderResponse: Reference key, SOL amount and Solana Pay URL.
    """
    result = await service.create_order(
        user_id=str(user.user_id),
        items=data.items,
        delivery=data.delivery(),
        payment_method="solana",
    )
    return CreateOrderResponse(**result)


@router.post(
    "/paystack/initialize",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a card order",
    description="Validates the cart, creates a pending order and returns the Paystack checkout URL.",
)
async def initialize_paystack(
    data: PaystackInitializeRequest,
    user: CurrentUser,
    service: Settlement,
) -> CreateOrderResponse:
    """Create a pending card order and initialize the Paystack transaction."""
    result = await service.create_order(
        user_id=str(user.user_id),
        items=data.items,
        delivery=data.delivery(),
        payment_method="paystack",
        email=data.email or user.email,
        callback_url=data.callback_url,
    )
    return CreateOrderResponse(**result)


@router.get(
    "/verify",
    response_model=VerifyPaymentResponse,
    summary="Verify a payment",
    description="Checks the order's payment and settles it. Safe to poll.",
)
async def verify_payment(
    service: Settlement,
    reference_key: Annotated[str, Query(min_length=1, description="Order payment reference")],
) -> VerifyPaymentResponse:
    """Verify and settle an order by its reference key.

    Unauthenticated: the reference key is unguessable and the response
    only reveals payment status.
    """
    result = await service.verify_payment(reference_key)
    return VerifyPaymentResponse(**result)


@router.get(
    "/paystack/verify",
    response_model=VerifyPaymentResponse,
    summary="Verify a card payment",
    description="Paystack callback verification. Same result as /payments/verify.",
)
async def verify_paystack_payment(
    service: Settlement,
    reference: Annotated[str, Query(min_length=1, description="Paystack transaction reference")],
) -> VerifyPaymentResponse:
    result = await service.verify_payment(reference)
    return VerifyPaymentResponse(**result)


@router.get(
    "/sol-price",
    response_model=SolPriceResponse,
    summary="Current SOL price",
    description="Returns the SOL/USD price used for crypto quotes.",
)
async def get_sol_price(
    oracle: Annotated[PriceOracleService, Depends(get_price_oracle)],
) -> SolPriceResponse:
    price = await oracle.get_spot_price()
    return SolPriceResponse(sol_price_usd=price, timestamp=datetime.now(timezone.utc))
