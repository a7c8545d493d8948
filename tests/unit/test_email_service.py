"""Unit tests for EmailService."""

from unittest.mock import MagicMock, patch

import pytest

from kickshaus.services.email_service import EmailService
from tests.conftest import PRODUCT_A, make_order


@pytest.fixture
def email_service() -> EmailService:
    with patch("kickshaus.services.email_service.get_settings") as mock_settings:
        mock_settings.return_value = MagicMock(
            resend_api_key="re_test",
            email_from_address="Kickshaus <noreply@kickshaus.com>",
            frontend_url="https://kickshaus.com",
        )
        return EmailService()


class TestSendOrderConfirmationEmail:
    """Tests for send_order_confirmation_email."""

    @pytest.mark.asyncio
    @patch("kickshaus.services.email_service.resend.Emails.send")
    async def test_sends_summary_with_solscan_link(self, mock_send: MagicMock, email_service: EmailService) -> None:
        mock_send.return_value = {"id": "email-1"}
        order = make_order(total_amount_fiat="2000.00")
        items = [{"product_id": PRODUCT_A, "quantity": 2, "price_at_purchase": "1000.00"}]

        result = await email_service.send_order_confirmation_email("buyer@example.com", order, items, tx_hash="sig-1")

        assert result == {"success": True, "email_id": "email-1"}
        params = mock_send.call_args.args[0]
        assert params["to"] == ["buyer@example.com"]
        assert params["subject"] == "Order Confirmed - Kickshaus #660e8400"
        assert "https://solscan.io/tx/sig-1" in params["html"]
        assert "₦2,000.00" in params["text"]

    @pytest.mark.asyncio
    @patch("kickshaus.services.email_service.resend.Emails.send")
    async def test_card_orders_have_no_chain_receipt(self, mock_send: MagicMock, email_service: EmailService) -> None:
        mock_send.return_value = {"id": "email-2"}

        await email_service.send_order_confirmation_email("buyer@example.com", make_order(), [])

        assert "solscan" not in mock_send.call_args.args[0]["html"]

    @pytest.mark.asyncio
    @patch("kickshaus.services.email_service.resend.Emails.send")
    async def test_lists_product_names(self, mock_send: MagicMock, email_service: EmailService) -> None:
        mock_send.return_value = {"id": "email-3"}
        items = [{"product_id": PRODUCT_A, "name": "Air Max", "quantity": 1, "price_at_purchase": "1000.00"}]

        await email_service.send_order_confirmation_email("buyer@example.com", make_order(), items)

        params = mock_send.call_args.args[0]
        assert "Air Max" in params["html"]
        assert "Air Max x 1" in params["text"]

    @pytest.mark.asyncio
    @patch("kickshaus.services.email_service.resend.Emails.send")
    async def test_send_errors_are_reported_not_raised(
        self, mock_send: MagicMock, email_service: EmailService
    ) -> None:
        mock_send.side_effect = Exception("rate limited")

        result = await email_service.send_order_confirmation_email("buyer@example.com", make_order(), [])

        assert result["success"] is False
        assert "rate limited" in result["error"]
