"""Cart Pydantic schemas for API request/response models."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CartItem(BaseModel):
    """A client-submitted cart line. Only the product and quantity are trusted."""

    model_config = ConfigDict(from_attributes=True)

    product_id: UUID = Field(description="Product UUID")
    quantity: int = Field(gt=0, description="Requested quantity")


class CartValidateRequest(BaseModel):
    """Schema for POST /cart/validate."""

    items: list[CartItem] = Field(default_factory=list, description="Cart lines to re-price")


class ValidatedCartItem(BaseModel):
    """A cart line re-priced against the catalog."""

    model_config = ConfigDict(from_attributes=True)

    product_id: str = Field(description="Product UUID")
    name: str = Field(description="Catalog product name")
    quantity: int = Field(description="Aggregated requested quantity")
    unit_price: Decimal = Field(description="Authoritative catalog unit price")
    subtotal: Decimal = Field(description="unit_price * quantity")
    in_stock: bool = Field(description="Whether the requested quantity is available")
    available_stock: int = Field(description="Units currently in stock")


class CartValidationResponse(BaseModel):
    """Result of zero-trust cart validation."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(description="True only if every line is in stock and priced")
    items: list[ValidatedCartItem] = Field(description="Itemized breakdown")
    total_fiat: Decimal = Field(description="Sum of in-stock, priced subtotals")
    currency: str = Field(description="Fiat currency code")

    @property
    def blocking_product_ids(self) -> list[str]:
        """Products preventing checkout."""
        return [item.product_id for item in self.items if not item.in_stock or item.unit_price <= 0]
