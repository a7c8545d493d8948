"""Application configuration management using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="kickshaus-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase service key for backend operations")

    # Auth
    jwt_secret: str = Field(..., description="HS256 secret used to verify customer access tokens")

    # Solana
    solana_rpc_url: str = Field(default="https://api.devnet.solana.com", description="Solana JSON-RPC endpoint")
    platform_wallet_address: str = Field(..., description="Solana wallet that receives customer payments")
    solana_finality: Literal["confirmed", "finalized"] = Field(
        default="confirmed",
        description="Commitment level a transfer must reach before an order is confirmed",
    )

    # Pricing
    coingecko_api_url: str = Field(default="https://api.coingecko.com/api/v3", description="CoinGecko API base URL")
    ngn_usd_rate: Decimal = Field(default=Decimal("1600"), gt=0, description="Static NGN per 1 USD rate")
    fallback_sol_price_usd: Decimal = Field(default=Decimal("150"), gt=0, description="SOL/USD price used in degraded mode")
    price_feed_strict: bool = Field(
        default=False,
        description="Reject order creation when no live or recent SOL price is available instead of using the fallback",
    )
    price_max_staleness_seconds: int = Field(default=300, ge=0, description="Max age of a cached SOL price used when the feed is down")

    # Orders
    store_currency: str = Field(default="NGN", description="Currency catalog prices are denominated in")
    store_label: str = Field(default="Kickshaus", description="Merchant label shown in wallet payment prompts")
    payment_expiry_minutes: int = Field(default=15, gt=0, description="Minutes a pending order accepts payment")
    expiry_sweep_interval_seconds: int = Field(default=60, ge=0, description="Expired order sweep interval (0 disables)")
    reference_max_attempts: int = Field(default=3, ge=1, description="Attempts to allocate a unique payment reference")

    # Paystack
    paystack_secret_key: str = Field(default="", description="Paystack secret API key")
    paystack_api_url: str = Field(default="https://api.paystack.co", description="Paystack API base URL")

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for outbound HTTP calls")

    # Email (Resend)
    resend_api_key: str = Field(default="", description="Resend API key for sending emails")
    email_from_address: str = Field(
        default="Kickshaus <noreply@kickshaus.com>",
        description="From address for transactional emails",
    )

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL for redirects and email links",
    )

    @model_validator(mode="after")
    def normalize_currency(self) -> "Settings":
        """Store the currency code upper-cased, as payment providers report it."""
        self.store_currency = self.store_currency.upper()
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_paystack_configured(self) -> bool:
        """Check if Paystack keys are present."""
        return bool(self.paystack_secret_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
