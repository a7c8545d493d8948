"""Order creation and payment settlement."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from kickshaus.api.middleware.error_handler import (
    BadRequestError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PaymentUnavailableError,
)
from kickshaus.core.config import Settings, get_settings
from kickshaus.core.http import UpstreamUnavailableError
from kickshaus.core.paystack import PaystackClient, PaystackError, get_paystack_client
from kickshaus.core.solana import encode_transfer_url
from kickshaus.models.order import TERMINAL_PAYMENT_STATUSES, DeliveryDetails, PaymentMethod
from kickshaus.schemas.cart import CartItem
from kickshaus.services.cart_service import CartService
from kickshaus.services.email_service import EmailService, get_email_service
from kickshaus.services.order_ledger import OrderLedger, parse_timestamp
from kickshaus.services.price_oracle_service import PriceOracleService, get_price_oracle
from kickshaus.services.reference_service import ReferenceService
from kickshaus.services.verifiers import (
    ChainVerifier,
    GatewayVerifier,
    PaymentVerifier,
    VerificationOutcome,
)

logger = logging.getLogger(__name__)

EXPIRED_REASON = "Payment expired"
STOCK_EXHAUSTED_REASON = "Paid but stock exhausted; needs review"


class SettlementService:
    """Creates orders with payment instructions and settles them.

    Every path that moves an order out of ``pending`` goes through the
    ledger's conditional writes, so this service may be called
    concurrently for the same reference by client polls and webhooks.
    """

    def __init__(
        self,
        ledger: OrderLedger | None = None,
        cart_service: CartService | None = None,
        price_oracle: PriceOracleService | None = None,
        reference_service: ReferenceService | None = None,
        verifiers: dict[str, PaymentVerifier] | None = None,
        paystack: PaystackClient | None = None,
        email_service: EmailService | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize settlement service. All collaborators are injectable for testing."""
        self.settings = settings or get_settings()
        self.ledger = ledger or OrderLedger(settings=self.settings)
        self.cart_service = cart_service or CartService()
        self.price_oracle = price_oracle or get_price_oracle()
        self.reference_service = reference_service or ReferenceService()
        self._paystack = paystack
        self._email_service = email_service
        self.verifiers: dict[str, PaymentVerifier] = verifiers or {
            "solana": ChainVerifier(settings=self.settings),
            "paystack": GatewayVerifier(paystack=paystack, settings=self.settings),
        }

    @property
    def paystack(self) -> PaystackClient:
        if self._paystack is None:
            self._paystack = get_paystack_client()
        return self._paystack

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            self._email_service = get_email_service()
        return self._email_service

    async def create_order(
        self,
        user_id: str,
        items: list[CartItem],
        delivery: DeliveryDetails | None = None,
        payment_method: PaymentMethod = "solana",
        email: str | None = None,
        callback_url: str | None = None,
    ) -> dict[str, Any]:
        """Validate a cart, create a pending order and return payment instructions.

        Args:
            user_id: Authenticated customer.
            items: Client cart lines; prices are taken from the catalog.
            delivery: Optional delivery details stored on the order.
            payment_method: "solana" for Solana Pay, "paystack" for card checkout.
            email: Customer email for Paystack when delivery has no contact_email.
            callback_url: Paystack redirect target after payment.

        Returns:
            dict: order_id, payment_method, reference_key, totals, payment
            instructions and expires_at.

        Raises:
            BadRequestError: Empty cart, or Paystack checkout without an email.
            InsufficientStockError: Any line is unknown, unpriced or out of stock.
            PaymentUnavailableError: The price feed or payment gateway is unavailable.
        """
        delivery = delivery or {}
        customer_email = delivery.get("contact_email") or email
        if payment_method == "paystack" and not customer_email:
            raise BadRequestError("An email address is required for card payments")
        if customer_email and not delivery.get("contact_email"):
            delivery = {**delivery, "contact_email": customer_email}

        cart = await self.cart_service.validate_cart(items)
        if not cart.success:
            raise InsufficientStockError(cart.blocking_product_ids)

        total_crypto: Decimal | None = None
        if payment_method == "solana":
            total_crypto = await self.price_oracle.fiat_to_crypto(cart.total_fiat)

        order = await self._create_with_unique_reference(
            user_id=user_id,
            payment_method=payment_method,
            items=cart.items,
            total_fiat=cart.total_fiat,
            total_crypto=total_crypto,
            delivery=delivery,
        )

        result: dict[str, Any] = {
            "order_id": order["id"],
            "payment_method": payment_method,
            "reference_key": order["reference_key"],
            "total_fiat": cart.total_fiat,
            "total_crypto": total_crypto,
            "solana_pay_url": None,
            "qr_code_data": None,
            "authorization_url": None,
            "expires_at": parse_timestamp(order["expires_at"]),
        }

        if payment_method == "solana":
            url = encode_transfer_url(
                recipient=self.settings.platform_wallet_address,
                amount=total_crypto,
                reference=order["reference_key"],
                label=self.settings.store_label,
                message=f"Order {str(order['id'])[:8]}",
            )
            result["solana_pay_url"] = url
            result["qr_code_data"] = url
        else:
            result["authorization_url"] = await self._initialize_gateway(
                order, cart.total_fiat, customer_email, callback_url
            )

        return result

    async def _create_with_unique_reference(self, **order_fields: Any) -> dict[str, Any]:
        """Create the order, regenerating the reference on a unique violation."""
        attempts = self.settings.reference_max_attempts
        for attempt in range(1, attempts + 1):
            reference = self.reference_service.generate()
            try:
                return await self.ledger.create(reference_key=reference, **order_fields)
            except ConflictError:
                logger.warning("Payment reference collision (attempt %d/%d)", attempt, attempts)
        raise PaymentUnavailableError("Could not allocate a payment reference. Please try again.")

    async def _initialize_gateway(
        self,
        order: dict[str, Any],
        total_fiat: Decimal,
        email: str,
        callback_url: str | None,
    ) -> str:
        amount_minor = int(total_fiat * 100)
        try:
            data = await self.paystack.initialize_transaction(
                email=email,
                amount_minor=amount_minor,
                reference=order["reference_key"],
                currency=self.settings.store_currency,
                callback_url=callback_url,
                metadata={"order_id": str(order["id"])},
            )
        except (PaystackError, UpstreamUnavailableError) as e:
            logger.error("Paystack initialization failed for order %s: %s", order["id"], e)
            await self.ledger.fail(order["id"], "Payment gateway initialization failed")
            raise PaymentUnavailableError("Card payments are temporarily unavailable") from e

        return data["authorization_url"]

    async def verify_payment(self, reference: str) -> dict[str, Any]:
        """Check an order's payment and apply the resulting transition.

        Safe to call repeatedly and concurrently. Terminal orders return
        their stored status without touching the payment rail. Orders held
        for review are re-verified on every call but never expire.

        Args:
            reference: The order's reference key.

        Returns:
            dict: status, order_id and transaction_signature.

        Raises:
            NotFoundError: If no order has this reference.
        """
        order = await self.ledger.get_by_reference(reference)
        if not order:
            raise NotFoundError("Order not found")

        if order["payment_status"] in TERMINAL_PAYMENT_STATUSES:
            return self._status(order)

        held = bool(order.get("review_proof"))
        if not held and parse_timestamp(order["expires_at"]) < datetime.now(timezone.utc):
            await self.ledger.fail(order["id"], EXPIRED_REASON)
            return await self._reload_status(reference)

        verifier = self.verifiers.get(order["payment_method"])
        if verifier is None:
            logger.error("No verifier for payment method %s (order %s)", order["payment_method"], order["id"])
            return self._status(order)

        result = await verifier.verify(order)

        if result.outcome == VerificationOutcome.CONFIRMED:
            try:
                won = await self.ledger.confirm(order["id"], result.proof)
            except ConflictError:
                # Paid but unfulfillable; kept pending with its proof for manual review
                await self.ledger.hold_for_review(order["id"], result.proof, STOCK_EXHAUSTED_REASON)
                return await self._reload_status(reference)
            if won:
                await self._notify_confirmed(order, result.proof)
            return await self._reload_status(reference)

        if result.outcome == VerificationOutcome.FAILED:
            logger.warning("Payment for order %s failed verification: %s", order["id"], result.reason)
            await self.ledger.fail(order["id"], result.reason or "Payment verification failed")
            return await self._reload_status(reference)

        logger.debug("Order %s still pending: %s", order["id"], result.reason)
        return self._status(order)

    async def _reload_status(self, reference: str) -> dict[str, Any]:
        order = await self.ledger.get_by_reference(reference)
        if not order:
            raise NotFoundError("Order not found")
        return self._status(order)

    @staticmethod
    def _status(order: dict[str, Any]) -> dict[str, Any]:
        return {
            "status": order["payment_status"],
            "order_id": order["id"],
            "transaction_signature": order.get("transaction_signature"),
        }

    async def _notify_confirmed(self, order: dict[str, Any], proof: str) -> None:
        to_email = order.get("contact_email")
        if not to_email:
            return

        try:
            full_order = await self.ledger.get_by_id(order["id"]) or order
            tx_hash = proof if order["payment_method"] == "solana" else None
            await self.email_service.send_order_confirmation_email(
                to_email=to_email,
                order=full_order,
                items=full_order.get("items", []),
                tx_hash=tx_hash,
            )
        except Exception as e:
            logger.error("Failed to send confirmation for order %s: %s", order["id"], str(e))

    async def get_order(self, order_id: str, user_id: str | None = None) -> dict[str, Any]:
        """Get an order, optionally restricted to its owner.

        Raises:
            NotFoundError: If the order does not exist or belongs to someone else.
        """
        order = await self.ledger.get_by_id(order_id, user_id=user_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def list_orders(self, user_id: str) -> list[dict[str, Any]]:
        """List a customer's orders, newest first."""
        return await self.ledger.list_for_user(user_id)

    async def list_all_orders(self) -> list[dict[str, Any]]:
        """List every order, newest first."""
        return await self.ledger.list_all()
