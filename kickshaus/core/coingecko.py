"""CoinGecko spot price client."""

from decimal import Decimal, InvalidOperation
from functools import lru_cache

from kickshaus.core.config import get_settings
from kickshaus.core.http import UpstreamUnavailableError, request_json


class CoinGeckoClient:
    """Fetches spot prices from the CoinGecko simple price API."""

    def __init__(self, api_url: str, timeout: float = 10.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def get_spot_price(self, asset_id: str = "solana", vs_currency: str = "usd") -> Decimal:
        """Return the current price of one unit of ``asset_id``.

        Raises:
            UpstreamUnavailableError: If the feed is unreachable or returns no usable price.
        """
        status_code, payload = await request_json(
            "GET",
            f"{self.api_url}/simple/price",
            timeout=self.timeout,
            params={"ids": asset_id, "vs_currencies": vs_currency},
        )
        if status_code >= 400:
            raise UpstreamUnavailableError(f"Price feed returned HTTP {status_code}")

        try:
            price = Decimal(str(payload[asset_id][vs_currency]))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise UpstreamUnavailableError("Price feed response missing price") from e

        if price <= 0:
            raise UpstreamUnavailableError(f"Price feed returned non-positive price {price}")
        return price


@lru_cache
def get_coingecko_client() -> CoinGeckoClient:
    """Get cached CoinGecko client singleton."""
    settings = get_settings()
    return CoinGeckoClient(settings.coingecko_api_url, timeout=settings.http_timeout_seconds)
