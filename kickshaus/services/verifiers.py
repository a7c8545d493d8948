"""Payment verifiers for the crypto and card flows.

A verifier answers one question for a pending order: has the payment
landed, is it wrong, or is it not there yet. It never writes anything.
Transient upstream failures always map to ``pending`` so the caller can
poll again; only positive evidence of a bad payment yields ``failed``.
"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from kickshaus.core.config import Settings, get_settings
from kickshaus.core.http import UpstreamUnavailableError
from kickshaus.core.paystack import PaystackClient, PaystackError, get_paystack_client
from kickshaus.core.solana import SolanaRPCClient, SolanaRPCError, get_solana_client, sol_to_lamports

logger = logging.getLogger(__name__)

# Paystack transaction statuses that will never become successful
PAYSTACK_FAILED_STATUSES = frozenset({"failed", "reversed"})

KOBO_PER_NAIRA = 100


class VerificationOutcome(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking one order against its payment rail."""

    outcome: VerificationOutcome
    proof: str | None = None
    reason: str | None = None

    @classmethod
    def pending(cls, reason: str | None = None) -> "VerificationResult":
        return cls(VerificationOutcome.PENDING, reason=reason)

    @classmethod
    def confirmed(cls, proof: str) -> "VerificationResult":
        return cls(VerificationOutcome.CONFIRMED, proof=proof)

    @classmethod
    def failed(cls, reason: str, proof: str | None = None) -> "VerificationResult":
        return cls(VerificationOutcome.FAILED, proof=proof, reason=reason)


class PaymentVerifier(Protocol):
    async def verify(self, order: dict[str, Any]) -> VerificationResult: ...


def _account_keys(transaction: dict[str, Any]) -> list[str]:
    """All account keys of a transaction, including lookup-table addresses.

    Balance arrays in the metadata are indexed over static keys followed by
    loaded writable then loaded readonly addresses.
    """
    message = transaction.get("transaction", {}).get("message", {})
    keys: list[str] = []
    for key in message.get("accountKeys", []):
        keys.append(key["pubkey"] if isinstance(key, dict) else key)

    loaded = (transaction.get("meta") or {}).get("loadedAddresses") or {}
    keys.extend(loaded.get("writable", []))
    keys.extend(loaded.get("readonly", []))
    return keys


class ChainVerifier:
    """Verifies Solana Pay transfers located by their reference account."""

    def __init__(
        self,
        rpc: SolanaRPCClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.rpc = rpc or get_solana_client()
        self.settings = settings or get_settings()

    async def verify_transfer(
        self,
        reference: str,
        recipient: str,
        amount: Decimal,
    ) -> VerificationResult:
        """Check that a transfer carrying ``reference`` paid ``amount`` SOL to ``recipient``.

        The recipient's lamport balance delta must equal the quoted amount
        exactly; under- and overpayment are both mismatches.

        Args:
            reference: Base58 reference account attached to the transfer.
            recipient: Wallet that must receive the funds.
            amount: Expected SOL amount.

        Returns:
            VerificationResult: pending, confirmed (proof is the signature) or failed.
        """
        commitment = self.settings.solana_finality

        try:
            signature = await self.rpc.find_reference(reference, commitment=commitment)
            if signature is None:
                return VerificationResult.pending("No transaction found for reference")

            transaction = await self.rpc.get_transaction(signature, commitment=commitment)
        except (UpstreamUnavailableError, SolanaRPCError) as e:
            logger.warning("Solana lookup for reference %s failed: %s", reference, e)
            return VerificationResult.pending("Solana RPC unavailable")

        if transaction is None:
            # Signature is indexed but the transaction has not reached the requested commitment yet
            return VerificationResult.pending("Transaction not yet available")

        meta = transaction.get("meta") or {}
        if meta.get("err") is not None:
            return VerificationResult.pending("Transaction failed on-chain")

        keys = _account_keys(transaction)
        if reference not in keys:
            return VerificationResult.failed("Reference not found in transaction", proof=signature)
        if recipient not in keys:
            return VerificationResult.failed("Recipient not found in transaction", proof=signature)

        index = keys.index(recipient)
        pre_balances = meta.get("preBalances") or []
        post_balances = meta.get("postBalances") or []
        if index >= len(pre_balances) or index >= len(post_balances):
            return VerificationResult.failed("Recipient balance missing from transaction", proof=signature)

        received = post_balances[index] - pre_balances[index]
        expected = sol_to_lamports(amount)
        if received != expected:
            logger.warning(
                "Amount mismatch for reference %s: expected %s lamports, received %s",
                reference,
                expected,
                received,
            )
            return VerificationResult.failed(
                f"Amount mismatch: expected {expected} lamports, received {received}",
                proof=signature,
            )

        return VerificationResult.confirmed(signature)

    async def verify(self, order: dict[str, Any]) -> VerificationResult:
        """Verify a crypto order against its quoted SOL amount."""
        if order.get("total_amount_crypto") is None:
            return VerificationResult.failed("Order has no crypto quote")

        return await self.verify_transfer(
            reference=order["reference_key"],
            recipient=self.settings.platform_wallet_address,
            amount=Decimal(str(order["total_amount_crypto"])),
        )


class GatewayVerifier:
    """Verifies card payments with the Paystack verify endpoint."""

    def __init__(
        self,
        paystack: PaystackClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.paystack = paystack or get_paystack_client()
        self.settings = settings or get_settings()

    async def verify(self, order: dict[str, Any]) -> VerificationResult:
        """Verify a card order.

        A successful Paystack transaction confirms the order only if its
        reference, amount in kobo and currency all match the order.
        """
        reference = order["reference_key"]

        try:
            data = await self.paystack.verify_transaction(reference)
        except (UpstreamUnavailableError, PaystackError) as e:
            logger.warning("Paystack verification for %s failed: %s", reference, e)
            return VerificationResult.pending("Payment gateway unavailable")

        if data is None:
            return VerificationResult.pending("Transaction not found at gateway")

        status = data.get("status")
        if status in PAYSTACK_FAILED_STATUSES:
            return VerificationResult.failed(f"Gateway reported transaction {status}")
        if status != "success":
            return VerificationResult.pending(f"Gateway status {status}")

        proof = str(data.get("id", reference))
        expected_minor = int(Decimal(str(order["total_amount_fiat"])) * KOBO_PER_NAIRA)

        if data.get("reference") != reference:
            return VerificationResult.failed("Gateway reference mismatch", proof=proof)
        if data.get("amount") != expected_minor:
            logger.warning(
                "Amount mismatch for %s: expected %s, gateway reported %s",
                reference,
                expected_minor,
                data.get("amount"),
            )
            return VerificationResult.failed(
                f"Amount mismatch: expected {expected_minor}, received {data.get('amount')}",
                proof=proof,
            )
        currency = (data.get("currency") or "").upper()
        if currency != self.settings.store_currency:
            return VerificationResult.failed(f"Currency mismatch: {currency}", proof=proof)

        return VerificationResult.confirmed(proof)
