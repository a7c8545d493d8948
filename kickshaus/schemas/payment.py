"""Payment and order Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from kickshaus.schemas.cart import CartItem


PaymentStatusValue = Literal["pending", "confirmed", "failed"]


class DeliveryFields(BaseModel):
    """Optional delivery details captured on the checkout form."""

    contact_name: str | None = Field(default=None, min_length=2, max_length=255)
    contact_email: EmailStr | None = Field(default=None)
    sender_phone: str | None = Field(default=None, min_length=7, max_length=50)
    receiver_phone: str | None = Field(default=None, min_length=7, max_length=50)
    shipping_address: str | None = Field(default=None, min_length=4, max_length=500)
    city: str | None = Field(default=None, min_length=2, max_length=100)
    state: str | None = Field(default=None, min_length=2, max_length=100)
    notes: str | None = Field(default=None, max_length=2000)

    def delivery(self) -> dict[str, str | None]:
        """Return the delivery fields as a plain dict."""
        return self.model_dump(include=set(DeliveryFields.model_fields))


class CreateOrderRequest(DeliveryFields):
    """Schema for POST /payments/create-order."""

    items: list[CartItem] = Field(default_factory=list, description="Cart lines")


class PaystackInitializeRequest(CreateOrderRequest):
    """Schema for POST /payments/paystack/initialize."""

    email: EmailStr | None = Field(default=None, description="Fallback customer email when contact_email is absent")
    callback_url: str | None = Field(default=None, description="Where Paystack redirects after payment")


class CreateOrderResponse(BaseModel):
    """Payment instructions for a newly created order."""

    model_config = ConfigDict(from_attributes=True)

    order_id: UUID = Field(description="Created order UUID")
    payment_method: Literal["solana", "paystack"] = Field(description="How the order must be paid")
    reference_key: str = Field(description="Unique payment reference")
    total_fiat: Decimal = Field(description="Order total in store currency")
    total_crypto: Decimal | None = Field(default=None, description="Quoted SOL amount (crypto flow only)")
    solana_pay_url: str | None = Field(default=None, description="Solana Pay transfer request URL")
    qr_code_data: str | None = Field(default=None, description="Payload to render as a QR code")
    authorization_url: str | None = Field(default=None, description="Paystack hosted checkout URL")
    expires_at: datetime = Field(description="Payment deadline")


class VerifyPaymentResponse(BaseModel):
    """Settlement status of an order."""

    model_config = ConfigDict(from_attributes=True)

    status: PaymentStatusValue = Field(description="Payment status")
    order_id: UUID = Field(description="Order UUID")
    transaction_signature: str | None = Field(default=None, description="Settlement proof once confirmed")


class SolPriceResponse(BaseModel):
    """Current SOL price."""

    sol_price_usd: Decimal = Field(description="SOL price in USD")
    timestamp: datetime = Field(description="Quote timestamp")


class OrderItemResponse(BaseModel):
    """A purchased line."""

    model_config = ConfigDict(from_attributes=True)

    product_id: UUID = Field(description="Product UUID")
    name: str | None = Field(default=None, description="Product name")
    quantity: int = Field(description="Quantity purchased")
    price_at_purchase: Decimal = Field(description="Unit price at checkout")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Order unique identifier")
    user_id: UUID = Field(description="Owning user")
    payment_method: str = Field(description="solana or paystack")
    total_amount_fiat: Decimal = Field(description="Total in store currency")
    total_amount_crypto: Decimal | None = Field(default=None, description="Quoted SOL amount")
    payment_status: PaymentStatusValue = Field(description="Payment status")
    fulfillment_status: str = Field(description="Fulfillment status")
    reference_key: str = Field(description="Payment reference")
    transaction_signature: str | None = Field(default=None, description="Settlement proof")
    failure_reason: str | None = Field(default=None, description="Why the order failed or is held")
    review_proof: str | None = Field(default=None, description="Verified proof of a paid order awaiting review")
    expires_at: datetime | None = Field(default=None, description="Payment deadline")
    contact_name: str | None = None
    contact_email: str | None = None
    shipping_address: str | None = None
    city: str | None = None
    state: str | None = None
    items: list[OrderItemResponse] = Field(default_factory=list, description="Order lines")
    created_at: datetime = Field(description="Creation timestamp")


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders")
