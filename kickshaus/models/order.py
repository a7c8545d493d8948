"""Order model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, TypedDict
from uuid import UUID


# Enum values matching the database CHECK constraints
PaymentStatus = Literal["pending", "confirmed", "failed"]
FulfillmentStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["solana", "paystack"]

TERMINAL_PAYMENT_STATUSES: frozenset[str] = frozenset({"confirmed", "failed"})


class OrderItem(TypedDict):
    """order_items table row representation.

    Immutable once written. price_at_purchase is a copy of the catalog
    price at checkout time.
    """

    id: UUID
    order_id: UUID
    product_id: UUID
    quantity: int
    price_at_purchase: Decimal
    created_at: datetime


class DeliveryDetails(TypedDict, total=False):
    """Optional delivery contact fields captured at checkout."""

    contact_name: str | None
    contact_email: str | None
    sender_phone: str | None
    receiver_phone: str | None
    shipping_address: str | None
    city: str | None
    state: str | None
    notes: str | None


class Order(TypedDict):
    """orders table row representation."""

    id: UUID
    user_id: UUID
    payment_method: PaymentMethod
    total_amount_fiat: Decimal
    total_amount_crypto: Decimal | None
    payment_status: PaymentStatus
    fulfillment_status: FulfillmentStatus
    reference_key: str
    transaction_signature: str | None
    failure_reason: str | None
    review_proof: str | None
    expires_at: datetime
    contact_name: str | None
    contact_email: str | None
    sender_phone: str | None
    receiver_phone: str | None
    shipping_address: str | None
    city: str | None
    state: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class OrderCreate(DeliveryDetails, total=False):
    """Data required to create a new order.

    Amounts are serialized as strings so PostgREST casts them to NUMERIC
    without float rounding.
    """

    user_id: str
    payment_method: PaymentMethod
    total_amount_fiat: str
    total_amount_crypto: str | None
    reference_key: str
    expires_at: str


class OrderItemCreate(TypedDict):
    """Data for one order line written together with its order."""

    product_id: str
    quantity: int
    price_at_purchase: str
