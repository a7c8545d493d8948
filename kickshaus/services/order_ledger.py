"""Order persistence and the payment state machine.

payment_status moves only pending -> confirmed or pending -> failed. Every
transition is a conditional write keyed on ``payment_status = 'pending'``
so concurrent pollers and webhooks cannot both apply a terminal state.
Confirmation and stock decrement run inside one database function
(``confirm_order``) so they commit or roll back together.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client

from kickshaus.api.middleware.error_handler import ConflictError
from kickshaus.core.config import Settings, get_settings
from kickshaus.core.supabase import get_supabase_client
from kickshaus.models.order import (
    DeliveryDetails,
    OrderCreate,
    OrderItemCreate,
    PaymentMethod,
)
from kickshaus.schemas.cart import ValidatedCartItem

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
INSUFFICIENT_STOCK_MARKER = "Insufficient stock"
ORDER_WITH_ITEMS = "*, order_items(*, products(name))"


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse a timestamp returned by PostgREST into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _with_items(order: dict[str, Any]) -> dict[str, Any]:
    items = order.pop("order_items", None) or []
    for item in items:
        product = item.pop("products", None) or {}
        item["name"] = product.get("name")
    order["items"] = items
    return order


class OrderLedger:
    """Persists orders and owns their payment state transitions."""

    def __init__(
        self,
        supabase_client: Client | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the ledger.

        Args:
            supabase_client: Optional Supabase client for testing.
            settings: Optional settings for testing.
        """
        self.client = supabase_client or get_supabase_client()
        self.settings = settings or get_settings()

    async def create(
        self,
        user_id: str,
        payment_method: PaymentMethod,
        reference_key: str,
        items: list[ValidatedCartItem],
        total_fiat: Any,
        total_crypto: Any = None,
        delivery: DeliveryDetails | None = None,
    ) -> dict[str, Any]:
        """Create a pending order and its items in one transaction.

        Args:
            user_id: Owning user.
            payment_method: "solana" or "paystack".
            reference_key: Unique payment reference.
            items: Validated cart lines; unit_price becomes price_at_purchase.
            total_fiat: Order total in store currency.
            total_crypto: Quoted SOL amount, crypto flow only.
            delivery: Optional delivery details.

        Returns:
            dict: The created order row.

        Raises:
            ConflictError: If the reference key is already taken.
        """
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.settings.payment_expiry_minutes)

        order_data: OrderCreate = {
            **(delivery or {}),
            "user_id": str(user_id),
            "payment_method": payment_method,
            "total_amount_fiat": str(total_fiat),
            "total_amount_crypto": str(total_crypto) if total_crypto is not None else None,
            "reference_key": reference_key,
            "expires_at": expires_at.isoformat(),
        }
        item_rows: list[OrderItemCreate] = [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "price_at_purchase": str(item.unit_price),
            }
            for item in items
        ]

        try:
            response = self.client.rpc(
                "create_order_with_items",
                {"p_order": order_data, "p_items": item_rows},
            ).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError("Payment reference already in use") from e
            raise

        rows = response.data or []
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            raise RuntimeError("Order creation returned no row")

        order = rows[0]
        logger.info(
            "Order %s created (%s, %s items, total %s)",
            order["id"],
            payment_method,
            len(item_rows),
            order_data["total_amount_fiat"],
        )
        return order

    async def get_by_reference(self, reference_key: str) -> dict[str, Any] | None:
        """Get an order by its payment reference."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("reference_key", reference_key)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def get_by_id(self, order_id: str, user_id: str | None = None) -> dict[str, Any] | None:
        """Get an order with its items.

        Args:
            order_id: The order's UUID.
            user_id: If given, only return the order when owned by this user.

        Returns:
            dict | None: The order with an ``items`` list, or None.
        """
        query = self.client.table("orders").select(ORDER_WITH_ITEMS).eq("id", str(order_id))
        if user_id is not None:
            query = query.eq("user_id", str(user_id))

        response = query.maybe_single().execute()
        if not response or not response.data:
            return None
        return _with_items(response.data)

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """Get all orders for a user, newest first."""
        response = (
            self.client.table("orders")
            .select(ORDER_WITH_ITEMS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_with_items(order) for order in response.data or []]

    async def list_all(self) -> list[dict[str, Any]]:
        """Get every order, newest first."""
        response = (
            self.client.table("orders")
            .select(ORDER_WITH_ITEMS)
            .order("created_at", desc=True)
            .execute()
        )
        return [_with_items(order) for order in response.data or []]

    async def confirm(self, order_id: str, proof: str) -> bool:
        """Confirm a pending order and decrement stock atomically.

        Args:
            order_id: The order's UUID.
            proof: Transaction signature or gateway transaction id.

        Returns:
            bool: True if this call performed the transition, False if the
            order was no longer pending.

        Raises:
            ConflictError: If stock ran out before confirmation; nothing is applied.
        """
        try:
            response = self.client.rpc(
                "confirm_order",
                {"p_order_id": str(order_id), "p_transaction_signature": proof},
            ).execute()
        except PostgrestAPIError as e:
            if INSUFFICIENT_STOCK_MARKER in (e.message or ""):
                logger.error("Order %s paid (%s) but stock is exhausted: %s", order_id, proof, e.message)
                raise ConflictError(e.message) from e
            raise

        confirmed = bool(response.data)
        if confirmed:
            logger.info("Order %s confirmed with proof %s", order_id, proof)
        else:
            logger.info("Order %s was not pending; confirmation skipped", order_id)
        return confirmed

    async def fail(self, order_id: str, reason: str) -> bool:
        """Fail a pending order.

        A no-op against confirmed or already failed orders.

        Returns:
            bool: True if this call performed the transition.
        """
        response = (
            self.client.table("orders")
            .update(
                {
                    "payment_status": "failed",
                    "fulfillment_status": "cancelled",
                    "failure_reason": reason,
                }
            )
            .eq("id", str(order_id))
            .eq("payment_status", "pending")
            .execute()
        )

        failed = bool(response.data)
        if failed:
            logger.info("Order %s failed: %s", order_id, reason)
        return failed

    async def hold_for_review(self, order_id: str, proof: str, reason: str) -> bool:
        """Record the proof of a verified payment that could not be fulfilled.

        The order stays pending and is excluded from expiry, so the proof
        survives until the order is confirmed or resolved by hand.

        Returns:
            bool: True if the order was still pending.
        """
        response = (
            self.client.table("orders")
            .update({"review_proof": proof, "failure_reason": reason})
            .eq("id", str(order_id))
            .eq("payment_status", "pending")
            .execute()
        )

        held = bool(response.data)
        if held:
            logger.warning("Order %s held for review with proof %s: %s", order_id, proof, reason)
        return held

    async def expire_stale(self, now: datetime | None = None) -> int:
        """Fail every pending order whose payment window has closed.

        Orders held for review keep their pending status.

        Returns:
            int: Number of orders expired.
        """
        cutoff = now or datetime.now(timezone.utc)
        response = (
            self.client.table("orders")
            .update(
                {
                    "payment_status": "failed",
                    "fulfillment_status": "cancelled",
                    "failure_reason": "Payment expired",
                }
            )
            .eq("payment_status", "pending")
            .lt("expires_at", cutoff.isoformat())
            .is_("review_proof", "null")
            .execute()
        )

        count = len(response.data) if response.data else 0
        if count:
            logger.info("Expired %d pending orders", count)
        return count
