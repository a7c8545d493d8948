"""Email service using Resend for transactional emails."""

import logging
from decimal import Decimal
from typing import Any

import resend

from kickshaus.core.config import get_settings

logger = logging.getLogger(__name__)

SOLSCAN_TX_URL = "https://solscan.io/tx/{signature}"


def _format_naira(amount: Any) -> str:
    return f"₦{Decimal(str(amount)):,.2f}"


class EmailService:
    """Service for sending transactional emails via Resend."""

    def __init__(self) -> None:
        """Initialize email service with Resend API key."""
        settings = get_settings()
        resend.api_key = settings.resend_api_key
        self.from_email = settings.email_from_address
        self.frontend_url = settings.frontend_url
        self.enabled = bool(settings.resend_api_key)

    async def send_order_confirmation_email(
        self,
        to_email: str,
        order: dict[str, Any],
        items: list[dict[str, Any]],
        tx_hash: str | None = None,
    ) -> dict[str, Any]:
        """Send an order confirmation email.

        Failures are logged and reported in the result; they never affect
        the order itself.

        Args:
            to_email: Recipient email address.
            order: The confirmed order row.
            items: Order lines (name is optional, price_at_purchase is the unit price).
            tx_hash: Solana transaction signature, linked to Solscan when given.

        Returns:
            dict: ``{"success": bool, ...}`` with the Resend email id or the error.
        """
        if not self.enabled:
            logger.info("Resend not configured; skipping confirmation email for order %s", order["id"])
            return {"success": False, "error": "Email not configured"}

        order_id = str(order["id"])
        dashboard_url = f"{self.frontend_url}/dashboard"

        items_html = "".join(
            f'<li style="margin-bottom: 5px;"><strong>{item.get("name") or "Product"}</strong>'
            f' x {item["quantity"]} - {_format_naira(item["price_at_purchase"])}</li>'
            for item in items
        )
        items_text = "\n".join(
            f'- {item.get("name") or "Product"} x {item["quantity"]} - {_format_naira(item["price_at_purchase"])}'
            for item in items
        )
        total = _format_naira(order["total_amount_fiat"])

        tx_html = ""
        tx_text = ""
        if tx_hash:
            tx_url = SOLSCAN_TX_URL.format(signature=tx_hash)
            tx_html = f'<p><strong>Blockchain Receipt:</strong> <a href="{tx_url}">View on Solscan</a></p>'
            tx_text = f"\nBlockchain receipt: {tx_url}\n"

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Order Confirmed</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #333;">
    <h1 style="color: #00A8E8;">Thank you for your order!</h1>
    <p>Your order <strong>#{order_id}</strong> has been confirmed and is being processed.</p>

    <div style="background: #f9f9f9; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="margin-top: 0;">Order Summary</h3>
        <ul style="padding-left: 20px;">
            {items_html}
        </ul>
        <hr style="border: 0; border-top: 1px solid #ddd; margin: 15px 0;">
        <p style="font-size: 1.2em; font-weight: bold;">Total: {total}</p>
    </div>

    {tx_html}

    <p>You can track your order status in your <a href="{dashboard_url}">Dashboard</a>.</p>
</body>
</html>
"""

        text_content = f"""
Thank you for your order!

Your order #{order_id} has been confirmed and is being processed.

{items_text}

Total: {total}
{tx_text}
Track your order: {dashboard_url}
"""

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": f"Order Confirmed - Kickshaus #{order_id[:8]}",
                "html": html_content,
                "text": text_content,
            })

            logger.info("Order confirmation email sent to %s, id: %s", to_email, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send order confirmation email to %s: %s", to_email, str(e))
            return {"success": False, "error": str(e)}


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get or create the global email service."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
