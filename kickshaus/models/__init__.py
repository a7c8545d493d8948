"""Database model type definitions."""

from kickshaus.models.order import (
    DeliveryDetails,
    FulfillmentStatus,
    Order,
    OrderCreate,
    OrderItem,
    OrderItemCreate,
    PaymentMethod,
    PaymentStatus,
)
from kickshaus.models.product import ProductPrice

__all__ = [
    "DeliveryDetails",
    "FulfillmentStatus",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderItemCreate",
    "PaymentMethod",
    "PaymentStatus",
    "ProductPrice",
]
