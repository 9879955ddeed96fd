"""
Tests for the Solana JSON-RPC client.

Uses httpx.MockTransport so no network access is needed.
"""

import json

import httpx
import pytest

from agentwiki.chain.rpc_client import ConfirmedTransaction, ParsedInstruction, SolanaRpcClient
from agentwiki.chain.verifier import ChainVerifier
from agentwiki.exceptions import ChainRpcError, VerificationFailure

RPC_URL = "https://rpc.test"


def rpc_transaction(signature: str = "sig1", err=None) -> dict:
    return {
        "slot": 42,
        "meta": {"err": err},
        "transaction": {
            "signatures": [signature],
            "message": {
                "instructions": [
                    {
                        "program": "system",
                        "programId": "11111111111111111111111111111111",
                        "parsed": {
                            "type": "transfer",
                            "info": {
                                "source": "Alice",
                                "destination": "Bob",
                                "lamports": 10_000_000,
                            },
                        },
                    },
                    {
                        "programId": "ComputeBudget111111111111111111111111111111",
                        "data": "3DTZbgwsozUF",
                    },
                ]
            },
        },
    }


def make_client(handler) -> SolanaRpcClient:
    return SolanaRpcClient(RPC_URL, timeout=1.0, transport=httpx.MockTransport(handler))


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    """Tests for turning jsonParsed payloads into dataclasses."""

    def test_parses_system_transfer(self) -> None:
        tx = ConfirmedTransaction.from_rpc("sig1", rpc_transaction())

        assert tx.slot == 42
        assert tx.succeeded
        assert tx.instructions[0].is_system_transfer
        assert tx.instructions[0].info["lamports"] == 10_000_000

    def test_undecoded_instruction_has_no_type(self) -> None:
        tx = ConfirmedTransaction.from_rpc("sig1", rpc_transaction())

        assert tx.instructions[1].type is None
        assert not tx.instructions[1].is_system_transfer

    def test_meta_error_marks_failure(self) -> None:
        tx = ConfirmedTransaction.from_rpc("sig1", rpc_transaction(err={"InstructionError": [0, 1]}))

        assert not tx.succeeded

    def test_missing_message_yields_no_instructions(self) -> None:
        tx = ConfirmedTransaction.from_rpc("sig1", {"slot": 1, "meta": None})

        assert tx.instructions == []
        assert tx.succeeded

    def test_instruction_with_non_dict_parsed(self) -> None:
        ix = ParsedInstruction.from_rpc({"program": "spl-memo", "parsed": "hello"})

        assert ix.program == "spl-memo"
        assert ix.type is None


# =============================================================================
# RPC Calls
# =============================================================================


class TestSolanaRpcClient:
    """Tests for SolanaRpcClient requests and error handling."""

    @pytest.mark.asyncio
    async def test_get_transaction_request_shape(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": rpc_transaction()})

        client = make_client(handler)
        tx = await client.get_confirmed_transaction("sig1")
        await client.close()

        assert tx is not None
        assert tx.signature == "sig1"
        body = seen[0]
        assert body["method"] == "getTransaction"
        assert body["params"][0] == "sig1"
        assert body["params"][1]["encoding"] == "jsonParsed"
        assert body["params"][1]["maxSupportedTransactionVersion"] == 0

    @pytest.mark.asyncio
    async def test_unknown_transaction_returns_none(self) -> None:
        client = make_client(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
        )

        assert await client.get_confirmed_transaction("nope") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self) -> None:
        client = make_client(
            lambda request: httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}},
            )
        )

        with pytest.raises(ChainRpcError) as exc_info:
            await client.get_confirmed_transaction("bad")
        await client.close()

        assert exc_info.value.rpc_code == -32602
        assert "Invalid param" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(ChainRpcError):
            await client.get_confirmed_transaction("sig1")
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(ChainRpcError):
            await client.get_balance("Alice")
        await client.close()

    @pytest.mark.asyncio
    async def test_get_balance_reads_value(self) -> None:
        client = make_client(
            lambda request: httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 5}, "value": 2_500_000}},
            )
        )

        assert await client.get_balance("Treasury") == 2_500_000
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, [], "ok"])
    async def test_non_object_reply_raises(self, body) -> None:
        client = make_client(lambda request: httpx.Response(200, content=json.dumps(body).encode()))

        with pytest.raises(ChainRpcError):
            await client.get_confirmed_transaction("sig1")
        await client.close()

    @pytest.mark.asyncio
    async def test_string_error_raises(self) -> None:
        client = make_client(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": "rate limited"})
        )

        with pytest.raises(ChainRpcError) as exc_info:
            await client.get_confirmed_transaction("sig1")
        await client.close()

        assert exc_info.value.rpc_code is None
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, [], {"error": "rate limited"}])
    async def test_malformed_reply_fails_verification_closed(self, body) -> None:
        client = make_client(lambda request: httpx.Response(200, content=json.dumps(body).encode()))
        verifier = ChainVerifier(client)

        result = await verifier.check_transfer("sig1", "Alice", "Bob", 0.01)
        await client.close()

        assert not result.verified
        assert result.reason == VerificationFailure.RPC_UNAVAILABLE
