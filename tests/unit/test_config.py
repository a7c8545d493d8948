"""Unit tests for configuration module."""

import os
from decimal import Decimal
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from kickshaus.core.config import Settings, get_settings

REQUIRED_ENV = {
    "SUPABASE_URL": "https://test.supabase.co",
    "SUPABASE_SECRET_KEY": "test-secret",
    "JWT_SECRET": "jwt-secret",
    "PLATFORM_WALLET_ADDRESS": "Wallet111",
}


class TestSettings:
    """Tests for Settings class."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, REQUIRED_ENV, clear=True):
            settings = Settings(_env_file=None)

        assert settings.port == 3000
        assert settings.store_currency == "NGN"
        assert settings.ngn_usd_rate == Decimal("1600")
        assert settings.fallback_sol_price_usd == Decimal("150")
        assert settings.payment_expiry_minutes == 15
        assert settings.solana_finality == "confirmed"
        assert settings.price_feed_strict is False
        assert settings.is_paystack_configured is False

    def test_loads_from_environment(self) -> None:
        env_vars = {
            **REQUIRED_ENV,
            "APP_ENV": "production",
            "STORE_CURRENCY": "ngn",
            "SOLANA_FINALITY": "finalized",
            "PRICE_FEED_STRICT": "true",
            "PAYSTACK_SECRET_KEY": "sk_live_x",
            "CORS_ORIGINS": "http://localhost:3000, https://kickshaus.com ,",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.is_production is True
        assert settings.store_currency == "NGN"
        assert settings.solana_finality == "finalized"
        assert settings.price_feed_strict is True
        assert settings.is_paystack_configured is True
        assert settings.cors_origins_list == ["http://localhost:3000", "https://kickshaus.com"]

    def test_missing_wallet_is_rejected(self) -> None:
        env_vars = {k: v for k, v in REQUIRED_ENV.items() if k != "PLATFORM_WALLET_ADDRESS"}

        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_invalid_finality_is_rejected(self) -> None:
        with patch.dict(os.environ, {**REQUIRED_ENV, "SOLANA_FINALITY": "processed"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_returns_cached_instance(self) -> None:
        get_settings.cache_clear()

        assert get_settings() is get_settings()
