"""Unit tests for the Solana RPC client and Solana Pay helpers."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from kickshaus.core.solana import (
    SolanaRPCClient,
    SolanaRPCError,
    encode_transfer_url,
    lamports_to_sol,
    sol_to_lamports,
)


class TestAmounts:
    """Tests for lamport conversion."""

    def test_sol_to_lamports_rounds_half_up(self) -> None:
        assert sol_to_lamports(Decimal("0.0000000025")) == 3
        assert sol_to_lamports(Decimal("0.0000000024")) == 2
        assert sol_to_lamports(Decimal("1.5")) == 1_500_000_000

    def test_lamports_to_sol_has_nine_places(self) -> None:
        assert str(lamports_to_sol(8_333_333)) == "0.008333333"


class TestEncodeTransferUrl:
    """Tests for Solana Pay URL encoding."""

    def test_encodes_amount_reference_and_label(self) -> None:
        url = encode_transfer_url(
            recipient="Wallet111",
            amount=Decimal("0.010000000"),
            reference="Ref111",
            label="Kickshaus",
            message="Order 660e8400",
        )

        assert url == "solana:Wallet111?amount=0.01&reference=Ref111&label=Kickshaus&message=Order%20660e8400"

    def test_omits_optional_fields(self) -> None:
        assert encode_transfer_url("Wallet111", Decimal("2"), "Ref111") == "solana:Wallet111?amount=2&reference=Ref111"


class TestSolanaRPCClient:
    """Tests for JSON-RPC calls."""

    @pytest.mark.asyncio
    async def test_find_reference_returns_oldest_successful_signature(self) -> None:
        client = SolanaRPCClient("https://rpc.test")
        signatures = [
            {"signature": "newest", "err": None},
            {"signature": "middle", "err": None},
            {"signature": "oldest-failed", "err": {"InstructionError": [0, "Custom"]}},
        ]

        with patch(
            "kickshaus.core.solana.request_json",
            new=AsyncMock(return_value=(200, {"jsonrpc": "2.0", "id": 1, "result": signatures})),
        ) as mock_request:
            signature = await client.find_reference("Ref111", commitment="finalized")

        assert signature == "middle"
        body = mock_request.call_args.kwargs["json"]
        assert body["method"] == "getSignaturesForAddress"
        assert body["params"][0] == "Ref111"
        assert body["params"][1]["commitment"] == "finalized"

    @pytest.mark.asyncio
    async def test_find_reference_none_when_empty(self) -> None:
        client = SolanaRPCClient("https://rpc.test")

        with patch(
            "kickshaus.core.solana.request_json",
            new=AsyncMock(return_value=(200, {"jsonrpc": "2.0", "id": 1, "result": []})),
        ):
            assert await client.find_reference("Ref111") is None

    @pytest.mark.asyncio
    async def test_rpc_error_is_raised(self) -> None:
        client = SolanaRPCClient("https://rpc.test")
        payload = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}}

        with patch("kickshaus.core.solana.request_json", new=AsyncMock(return_value=(200, payload))):
            with pytest.raises(SolanaRPCError) as exc_info:
                await client.get_transaction("sig")

        assert exc_info.value.code == -32602

    @pytest.mark.asyncio
    async def test_get_transaction_requests_versioned_json(self) -> None:
        client = SolanaRPCClient("https://rpc.test")

        with patch(
            "kickshaus.core.solana.request_json",
            new=AsyncMock(return_value=(200, {"jsonrpc": "2.0", "id": 1, "result": None})),
        ) as mock_request:
            assert await client.get_transaction("sig") is None

        options = mock_request.call_args.kwargs["json"]["params"][1]
        assert options["encoding"] == "json"
        assert options["maxSupportedTransactionVersion"] == 0
