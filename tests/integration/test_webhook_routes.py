"""Integration tests for the Paystack webhook endpoint."""

import hashlib
import hmac
import json
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from kickshaus.api.middleware.error_handler import NotFoundError
from kickshaus.core.paystack import PaystackClient, get_paystack_client
from kickshaus.main import app

SECRET = "sk_test_paystack_secret"


def _sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


@pytest.fixture
def webhook_client(client: TestClient) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_paystack_client] = lambda: PaystackClient(SECRET, "https://api.paystack.co")
    yield client


class TestPaystackWebhook:
    """Tests for POST /api/v1/webhooks/paystack."""

    def test_missing_signature(self, webhook_client: TestClient, mock_settlement: MagicMock) -> None:
        response = webhook_client.post("/api/v1/webhooks/paystack", content=b"{}")

        assert response.status_code == 401
        mock_settlement.verify_payment.assert_not_called()

    def test_invalid_signature(self, webhook_client: TestClient, mock_settlement: MagicMock) -> None:
        body = json.dumps({"event": "charge.success", "data": {"reference": "REF-1"}}).encode()

        response = webhook_client.post(
            "/api/v1/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": _sign(body, "wrong-secret")},
        )

        assert response.status_code == 401
        mock_settlement.verify_payment.assert_not_called()

    def test_charge_success_settles_order(self, webhook_client: TestClient, mock_settlement: MagicMock) -> None:
        mock_settlement.verify_payment.return_value = {
            "status": "confirmed",
            "order_id": "660e8400-e29b-41d4-a716-446655440000",
            "transaction_signature": "4099260516",
        }
        body = json.dumps({"event": "charge.success", "data": {"reference": "REF-1", "amount": 200000}}).encode()

        response = webhook_client.post(
            "/api/v1/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": _sign(body)},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        mock_settlement.verify_payment.assert_awaited_once_with("REF-1")

    def test_other_events_are_acknowledged(self, webhook_client: TestClient, mock_settlement: MagicMock) -> None:
        body = json.dumps({"event": "transfer.success", "data": {"reference": "T-1"}}).encode()

        response = webhook_client.post(
            "/api/v1/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": _sign(body)},
        )

        assert response.status_code == 200
        mock_settlement.verify_payment.assert_not_called()

    def test_unknown_reference_is_acknowledged(self, webhook_client: TestClient, mock_settlement: MagicMock) -> None:
        mock_settlement.verify_payment.side_effect = NotFoundError("Order not found")
        body = json.dumps({"event": "charge.success", "data": {"reference": "ghost"}}).encode()

        response = webhook_client.post(
            "/api/v1/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": _sign(body)},
        )

        assert response.status_code == 200

    def test_invalid_json(self, webhook_client: TestClient) -> None:
        body = b"not json"

        response = webhook_client.post(
            "/api/v1/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": _sign(body)},
        )

        assert response.status_code == 400
