"""Integration tests for order history endpoints."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from kickshaus.api.middleware.error_handler import NotFoundError
from tests.conftest import TEST_USER_ID, make_order

ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"
PRODUCT_ID = "770e8400-e29b-41d4-a716-446655440000"


def _order_with_items(**overrides) -> dict:
    order = make_order(**overrides)
    order["items"] = [{"product_id": PRODUCT_ID, "quantity": 2, "price_at_purchase": "1000.00"}]
    return order


class TestListOrders:
    """Tests for GET /api/v1/orders."""

    def test_requires_authentication(self, client: TestClient) -> None:
        response = client.get("/api/v1/orders")

        assert response.status_code == 401

    def test_lists_own_orders(
        self, client: TestClient, mock_settlement: MagicMock, auth_headers: dict[str, str]
    ) -> None:
        mock_settlement.list_orders.return_value = [make_order(), make_order(id="770e8400-e29b-41d4-a716-446655440001")]

        response = client.get("/api/v1/orders", headers=auth_headers)

        assert response.status_code == 200
        assert len(response.json()["items"]) == 2
        mock_settlement.list_orders.assert_awaited_once_with(TEST_USER_ID)


class TestGetOrder:
    """Tests for GET /api/v1/orders/{order_id}."""

    def test_returns_order_with_items(
        self, client: TestClient, mock_settlement: MagicMock, auth_headers: dict[str, str]
    ) -> None:
        mock_settlement.get_order.return_value = _order_with_items(
            payment_status="confirmed", transaction_signature="sig-1"
        )

        response = client.get(f"/api/v1/orders/{ORDER_ID}", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["payment_status"] == "confirmed"
        assert data["transaction_signature"] == "sig-1"
        assert data["items"][0]["quantity"] == 2
        mock_settlement.get_order.assert_awaited_once_with(ORDER_ID, user_id=TEST_USER_ID)

    def test_foreign_order_is_not_found(
        self, client: TestClient, mock_settlement: MagicMock, auth_headers: dict[str, str]
    ) -> None:
        mock_settlement.get_order.side_effect = NotFoundError("Order not found")

        response = client.get(f"/api/v1/orders/{ORDER_ID}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_invalid_uuid(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/api/v1/orders/not-a-uuid", headers=auth_headers)

        assert response.status_code == 422


class TestAdminOrders:
    """Tests for /api/v1/admin/orders."""

    def test_customer_is_forbidden(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/api/v1/admin/orders", headers=auth_headers)

        assert response.status_code == 403

    def test_admin_lists_all_orders(
        self, client: TestClient, mock_settlement: MagicMock, admin_headers: dict[str, str]
    ) -> None:
        mock_settlement.list_all_orders.return_value = [make_order()]

        response = client.get("/api/v1/admin/orders", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["items"][0]["user_id"] == TEST_USER_ID

    def test_admin_reads_any_order(
        self, client: TestClient, mock_settlement: MagicMock, admin_headers: dict[str, str]
    ) -> None:
        mock_settlement.get_order.return_value = _order_with_items()

        response = client.get(f"/api/v1/admin/orders/{ORDER_ID}", headers=admin_headers)

        assert response.status_code == 200
        mock_settlement.get_order.assert_awaited_once_with(ORDER_ID)
