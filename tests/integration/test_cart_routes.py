"""Integration tests for cart validation endpoint."""

from collections.abc import Generator
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from kickshaus.api.deps import get_cart_service
from kickshaus.main import app
from kickshaus.schemas.cart import CartValidationResponse, ValidatedCartItem
from kickshaus.services.cart_service import CartService
from tests.conftest import PRODUCT_A


def _validation(in_stock: bool) -> CartValidationResponse:
    return CartValidationResponse(
        success=in_stock,
        items=[
            ValidatedCartItem(
                product_id=PRODUCT_A,
                name="Jollof Pack",
                quantity=2,
                unit_price=Decimal("1000.00"),
                subtotal=Decimal("2000.00"),
                in_stock=in_stock,
                available_stock=5 if in_stock else 1,
            )
        ],
        total_fiat=Decimal("2000.00") if in_stock else Decimal("0"),
        currency="NGN",
    )


@pytest.fixture
def mock_cart() -> MagicMock:
    """Cart service double injected into the route."""
    cart = MagicMock(spec=CartService)
    cart.validate_cart = AsyncMock(return_value=_validation(True))
    return cart


@pytest.fixture
def cart_client(client: TestClient, mock_cart: MagicMock) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_cart_service] = lambda: mock_cart
    yield client


class TestValidateCart:
    """Tests for POST /api/v1/cart/validate."""

    def test_returns_itemized_totals(self, cart_client: TestClient, mock_cart: MagicMock) -> None:
        response = cart_client.post(
            "/api/v1/cart/validate",
            json={"items": [{"product_id": PRODUCT_A, "quantity": 2, "price": "1.00"}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert Decimal(data["total_fiat"]) == Decimal("2000.00")
        assert data["items"][0]["name"] == "Jollof Pack"
        mock_cart.validate_cart.assert_awaited_once()

    def test_reports_out_of_stock(self, cart_client: TestClient, mock_cart: MagicMock) -> None:
        mock_cart.validate_cart.return_value = _validation(False)

        response = cart_client.post("/api/v1/cart/validate", json={"items": [{"product_id": PRODUCT_A, "quantity": 2}]})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["items"][0]["in_stock"] is False

    def test_upper_case_product_id_is_normalized(self, cart_client: TestClient, mock_cart: MagicMock) -> None:
        response = cart_client.post(
            "/api/v1/cart/validate",
            json={"items": [{"product_id": PRODUCT_A.upper(), "quantity": 2}]},
        )

        assert response.status_code == 200
        items = mock_cart.validate_cart.call_args.args[0]
        assert str(items[0].product_id) == PRODUCT_A

    def test_rejects_negative_quantity(self, cart_client: TestClient, mock_cart: MagicMock) -> None:
        response = cart_client.post("/api/v1/cart/validate", json={"items": [{"product_id": PRODUCT_A, "quantity": -1}]})

        assert response.status_code == 422
        mock_cart.validate_cart.assert_not_called()

    def test_rejects_malformed_product_id(self, cart_client: TestClient, mock_cart: MagicMock) -> None:
        response = cart_client.post("/api/v1/cart/validate", json={"items": [{"product_id": "P1", "quantity": 2}]})

        assert response.status_code == 422
        mock_cart.validate_cart.assert_not_called()
