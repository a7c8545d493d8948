"""Paystack REST client and webhook signature verification."""

import hashlib
import hmac
import logging
from functools import lru_cache
from typing import Any
from urllib.parse import quote

from kickshaus.core.config import get_settings
from kickshaus.core.http import request_json

logger = logging.getLogger(__name__)


class PaystackError(Exception):
    """Paystack rejected a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PaystackClient:
    """Async client for the Paystack transaction API."""

    def __init__(self, secret_key: str, base_url: str, timeout: float = 10.0) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _ensure_configured(self) -> None:
        if not self.secret_key:
            raise PaystackError("Paystack is not configured. Please set PAYSTACK_SECRET_KEY environment variable.")

    async def initialize_transaction(
        self,
        email: str,
        amount_minor: int,
        reference: str,
        currency: str,
        callback_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Initialize a transaction and obtain the hosted checkout URL.

        Args:
            email: Customer email (required by Paystack).
            amount_minor: Amount in the currency's minor unit (kobo for NGN).
            reference: Merchant reference; Paystack echoes it back on verify.
            currency: ISO currency code.
            callback_url: Where Paystack redirects after payment.
            metadata: Extra data stored with the transaction.

        Returns:
            dict: Paystack ``data`` object with authorization_url, access_code, reference.

        Raises:
            PaystackError: If Paystack rejects the request.
            UpstreamUnavailableError: If Paystack cannot be reached.
        """
        self._ensure_configured()
        body: dict[str, Any] = {
            "email": email,
            "amount": amount_minor,
            "reference": reference,
            "currency": currency,
        }
        if callback_url:
            body["callback_url"] = callback_url
        if metadata:
            body["metadata"] = metadata

        status_code, payload = await request_json(
            "POST",
            f"{self.base_url}/transaction/initialize",
            timeout=self.timeout,
            headers=self.headers,
            json=body,
        )
        if status_code >= 400 or not payload.get("status"):
            raise PaystackError(payload.get("message", "Transaction initialization failed"), status_code)
        return payload["data"]

    async def verify_transaction(self, reference: str) -> dict[str, Any] | None:
        """Fetch the server-side state of a transaction.

        Returns:
            dict | None: Paystack ``data`` object, or None if the reference is unknown.

        Raises:
            PaystackError: If Paystack rejects the request for another reason.
            UpstreamUnavailableError: If Paystack cannot be reached.
        """
        self._ensure_configured()
        status_code, payload = await request_json(
            "GET",
            f"{self.base_url}/transaction/verify/{quote(reference, safe='')}",
            timeout=self.timeout,
            headers=self.headers,
        )
        message = str(payload.get("message", ""))
        if status_code == 404 or (status_code >= 400 and "not found" in message.lower()):
            return None
        if status_code >= 400 or not payload.get("status"):
            raise PaystackError(message or "Transaction verification failed", status_code)
        return payload.get("data")

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Check the x-paystack-signature header (HMAC-SHA512 of the raw body)."""
        if not self.secret_key or not signature:
            return False
        expected = hmac.new(self.secret_key.encode(), payload, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)


@lru_cache
def get_paystack_client() -> PaystackClient:
    """Get cached Paystack client singleton."""
    settings = get_settings()
    if not settings.is_paystack_configured:
        logger.warning("Paystack secret key not configured. Paystack features will not work.")
    return PaystackClient(
        settings.paystack_secret_key,
        settings.paystack_api_url,
        timeout=settings.http_timeout_seconds,
    )
