"""Fiat to SOL conversion using a live price feed."""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal

from kickshaus.api.middleware.error_handler import PaymentUnavailableError
from kickshaus.core.coingecko import CoinGeckoClient, get_coingecko_client
from kickshaus.core.config import Settings, get_settings
from kickshaus.core.http import UpstreamUnavailableError
from kickshaus.core.solana import lamports_to_sol, sol_to_lamports

logger = logging.getLogger(__name__)


@dataclass
class PriceQuote:
    """A SOL/USD price and where it came from."""

    price_usd: Decimal
    source: str  # "live", "cached" or "fallback"
    fetched_at: float


class PriceOracleService:
    """Converts store-currency amounts into SOL.

    Failure policy when the feed is unreachable, applied in order:

    1. reuse the last live price if it is younger than
       ``price_max_staleness_seconds``;
    2. in strict mode, raise ``PaymentUnavailableError``;
    3. otherwise use ``fallback_sol_price_usd``.
    """

    def __init__(
        self,
        feed: CoinGeckoClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.feed = feed or get_coingecko_client()
        self.settings = settings or get_settings()
        self._last_live: PriceQuote | None = None

    async def get_quote(self) -> PriceQuote:
        """Get the SOL/USD price according to the failure policy.

        Raises:
            PaymentUnavailableError: In strict mode when no usable price exists.
        """
        try:
            price = await self.feed.get_spot_price("solana", "usd")
            self._last_live = PriceQuote(price_usd=price, source="live", fetched_at=time.monotonic())
            return self._last_live
        except UpstreamUnavailableError as e:
            logger.warning("SOL price feed unavailable: %s", e)

        if self._last_live is not None:
            age = time.monotonic() - self._last_live.fetched_at
            if age <= self.settings.price_max_staleness_seconds:
                logger.info("Using cached SOL price $%s (%.0fs old)", self._last_live.price_usd, age)
                return PriceQuote(
                    price_usd=self._last_live.price_usd,
                    source="cached",
                    fetched_at=self._last_live.fetched_at,
                )

        if self.settings.price_feed_strict:
            raise PaymentUnavailableError("SOL price is unavailable. Please try again shortly.")

        logger.warning("Using fallback SOL price: $%s", self.settings.fallback_sol_price_usd)
        return PriceQuote(
            price_usd=self.settings.fallback_sol_price_usd,
            source="fallback",
            fetched_at=time.monotonic(),
        )

    async def get_spot_price(self) -> Decimal:
        """Current SOL price in USD."""
        quote = await self.get_quote()
        return quote.price_usd

    async def fiat_to_crypto(self, amount_fiat: Decimal) -> Decimal:
        """Convert a store-currency amount to SOL.

        The store currency is converted to USD with the configured static
        rate, then to SOL at the quoted price. The result is rounded half up
        to a whole number of lamports, so it is exactly representable
        on-chain and is the amount the customer must transfer.

        Args:
            amount_fiat: Amount in store currency.

        Returns:
            Decimal: SOL amount with 9 decimal places.
        """
        quote = await self.get_quote()
        amount_usd = amount_fiat / self.settings.ngn_usd_rate
        amount_sol = amount_usd / quote.price_usd
        return lamports_to_sol(sol_to_lamports(amount_sol))


_price_oracle: PriceOracleService | None = None


def get_price_oracle() -> PriceOracleService:
    """Get or create the global price oracle (keeps the last live quote)."""
    global _price_oracle
    if _price_oracle is None:
        _price_oracle = PriceOracleService()
    return _price_oracle
