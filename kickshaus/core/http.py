"""Shared outbound HTTP helper with timing and retry logic."""

import asyncio
import logging
import time
from typing import Any

import aiohttp
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 10

# Latency thresholds for logging (milliseconds)
SLOW_CALL_THRESHOLD_MS = 2000


class UpstreamUnavailableError(Exception):
    """An upstream service could not be reached or answered with a transient error.

    Raised after retries are exhausted. Callers must treat it as
    "could not check right now", never as evidence about a payment.
    """


@retry(
    retry=retry_if_exception_type(
        (aiohttp.ClientConnectionError, asyncio.TimeoutError, UpstreamUnavailableError)
    ),
    stop=stop_after_attempt(MAX_RETRIES),
    wait=wait_exponential(multiplier=1, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
    reraise=True,
)
async def _send_with_retry(
    method: str,
    url: str,
    timeout: float,
    **kwargs: Any,
) -> tuple[int, Any]:
    """Send one request, retrying connection errors, timeouts, 429 and 5xx."""
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(timeout=client_timeout) as session:
        async with session.request(method, url, **kwargs) as response:
            if response.status == 429 or response.status >= 500:
                raise UpstreamUnavailableError(f"{method} {url} returned HTTP {response.status}")
            try:
                payload = await response.json(content_type=None)
            except ValueError as e:
                raise UpstreamUnavailableError(f"{method} {url} returned a non-JSON body") from e
            return response.status, payload


async def request_json(
    method: str,
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any = None,
) -> tuple[int, Any]:
    """Perform an HTTP request and decode the JSON body.

    Args:
        method: HTTP method.
        url: Absolute URL.
        timeout: Total timeout per attempt in seconds.
        headers: Optional request headers.
        params: Optional query parameters.
        json: Optional JSON body.

    Returns:
        tuple: (HTTP status code, decoded JSON payload).

    Raises:
        UpstreamUnavailableError: If the upstream stayed unreachable after retries.
    """
    start_time = time.perf_counter()
    try:
        return await _send_with_retry(
            method,
            url,
            timeout,
            headers=headers,
            params=params,
            json=json,
        )
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error("%s %s failed after %d attempts: %s", method, url, MAX_RETRIES, e)
        raise UpstreamUnavailableError(f"{method} {url} failed: {type(e).__name__}") from e
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        if latency_ms > SLOW_CALL_THRESHOLD_MS:
            logger.warning("Slow upstream call: %s %s took %.2fms", method, url, latency_ms)
