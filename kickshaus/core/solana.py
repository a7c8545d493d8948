"""Solana JSON-RPC client and Solana Pay helpers."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any
from urllib.parse import quote

from kickshaus.core.config import get_settings
from kickshaus.core.http import request_json

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
SOL_DECIMALS = 9

# Upper bound on signatures fetched while locating a reference
SIGNATURE_SEARCH_LIMIT = 1000


class SolanaRPCError(Exception):
    """JSON-RPC level error returned by the Solana node."""

    def __init__(self, message: str, code: int | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


def sol_to_lamports(amount: Decimal) -> int:
    """Convert a SOL amount to integer lamports, rounding half up."""
    return int((amount * LAMPORTS_PER_SOL).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def lamports_to_sol(lamports: int) -> Decimal:
    """Convert integer lamports to a SOL amount with exactly 9 decimal places."""
    return (Decimal(lamports) / LAMPORTS_PER_SOL).quantize(Decimal(1).scaleb(-SOL_DECIMALS))


def format_sol_amount(amount: Decimal) -> str:
    """Render a SOL amount without exponent or trailing zeros."""
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def encode_transfer_url(
    recipient: str,
    amount: Decimal,
    reference: str,
    label: str | None = None,
    message: str | None = None,
) -> str:
    """Build a Solana Pay transfer request URL.

    Args:
        recipient: Base58 wallet address receiving the transfer.
        amount: Amount in SOL.
        reference: Base58 reference account embedded in the transfer.
        label: Optional merchant label shown by the wallet.
        message: Optional message shown by the wallet.

    Returns:
        str: ``solana:`` URL suitable for deep links and QR codes.
    """
    query = [f"amount={format_sol_amount(amount)}", f"reference={reference}"]
    if label:
        query.append(f"label={quote(label, safe='')}")
    if message:
        query.append(f"message={quote(message, safe='')}")
    return f"solana:{recipient}?{'&'.join(query)}"


class SolanaRPCClient:
    """Minimal async Solana JSON-RPC client for payment lookups."""

    def __init__(self, rpc_url: str, timeout: float = 10.0) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout

    async def _call(self, method: str, params: list[Any]) -> Any:
        """Invoke a JSON-RPC method and return its result.

        Raises:
            SolanaRPCError: If the node returns a JSON-RPC error.
            UpstreamUnavailableError: If the node cannot be reached.
        """
        body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        _, payload = await request_json("POST", self.rpc_url, timeout=self.timeout, json=body)

        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            raise SolanaRPCError(error.get("message", "Unknown RPC error"), error.get("code"))

        return payload.get("result") if isinstance(payload, dict) else None

    async def get_signatures_for_address(
        self,
        address: str,
        commitment: str = "confirmed",
        limit: int = SIGNATURE_SEARCH_LIMIT,
    ) -> list[dict[str, Any]]:
        """List signatures touching an address, newest first."""
        result = await self._call(
            "getSignaturesForAddress",
            [address, {"commitment": commitment, "limit": limit}],
        )
        return result or []

    async def get_transaction(
        self,
        signature: str,
        commitment: str = "confirmed",
    ) -> dict[str, Any] | None:
        """Fetch a transaction with status metadata, or None if unknown."""
        return await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "commitment": commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )

    async def find_reference(
        self,
        reference: str,
        commitment: str = "confirmed",
    ) -> str | None:
        """Locate the oldest successful transaction that includes a reference account.

        Transactions that failed on-chain are skipped so a customer can
        retry a transfer with the same reference.

        Args:
            reference: Base58 reference account.
            commitment: Required commitment level.

        Returns:
            str | None: The signature, or None if no transaction has landed yet.
        """
        signatures = await self.get_signatures_for_address(reference, commitment=commitment)
        successful = [entry for entry in signatures if entry.get("err") is None]
        if not successful:
            return None
        return successful[-1]["signature"]


@lru_cache
def get_solana_client() -> SolanaRPCClient:
    """Get cached Solana RPC client singleton."""
    settings = get_settings()
    return SolanaRPCClient(settings.solana_rpc_url, timeout=settings.http_timeout_seconds)
