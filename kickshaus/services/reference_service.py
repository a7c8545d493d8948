"""Payment reference generation."""

import secrets

import base58

# 256 bits of entropy
REFERENCE_BYTES = 32


class ReferenceService:
    """Generates unguessable payment references.

    A reference is 32 random bytes encoded as base58. The result is
    alphanumeric, which Paystack accepts as a merchant reference, and is a
    valid Solana address, so it can be attached to a transfer as a
    Solana Pay reference account. Uniqueness is enforced by the orders
    table, not here.
    """

    def generate(self) -> str:
        """Return a new random reference key."""
        return base58.b58encode(secrets.token_bytes(REFERENCE_BYTES)).decode("ascii")
