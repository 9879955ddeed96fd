"""
Solana RPC Client

Read-only JSON-RPC access to confirmed transactions and account balances.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import structlog

from agentwiki.exceptions import ChainRpcError

logger = structlog.get_logger(__name__)

SYSTEM_PROGRAM = "system"
TRANSFER = "transfer"

GET_TRANSACTION_CONFIG = {
    "encoding": "jsonParsed",
    "commitment": "confirmed",
    "maxSupportedTransactionVersion": 0,
}


@dataclass
class ParsedInstruction:
    """One top-level instruction from a jsonParsed transaction."""

    program: str | None
    type: str | None
    info: dict[str, Any] = field(default_factory=dict)

    @property
    def is_system_transfer(self) -> bool:
        return self.program == SYSTEM_PROGRAM and self.type == TRANSFER

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "ParsedInstruction":
        parsed = raw.get("parsed")
        # Instructions the node cannot decode carry raw data instead of a dict
        if not isinstance(parsed, dict):
            return cls(program=raw.get("program"), type=None)
        return cls(
            program=raw.get("program"),
            type=parsed.get("type"),
            info=parsed.get("info") or {},
        )


@dataclass
class ConfirmedTransaction:
    signature: str
    slot: int | None
    error: Any | None
    instructions: list[ParsedInstruction]

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def from_rpc(cls, signature: str, result: dict[str, Any]) -> "ConfirmedTransaction":
        meta = result.get("meta") or {}
        message = (result.get("transaction") or {}).get("message") or {}
        return cls(
            signature=signature,
            slot=result.get("slot"),
            error=meta.get("err"),
            instructions=[
                ParsedInstruction.from_rpc(ix) for ix in message.get("instructions", [])
            ],
        )


class LedgerClient(Protocol):
    """What the verifier and treasury need from a ledger."""

    async def get_confirmed_transaction(self, signature: str) -> ConfirmedTransaction | None:
        ...

    async def get_balance(self, address: str) -> int:
        ...


class SolanaRpcClient:
    """
    Async Solana JSON-RPC client.

    Usage:
        client = SolanaRpcClient("https://api.devnet.solana.com")
        tx = await client.get_confirmed_transaction(signature)
        await client.close()
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.rpc_url = rpc_url
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def close(self) -> None:
        await self._http.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC call.

        Raises:
            ChainRpcError: On transport failure, non-2xx status or RPC error
        """
        request_id = next(self._ids)
        try:
            response = await self._http.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "method": method,
                    "params": params,
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("rpc_timeout", method=method)
            raise ChainRpcError(f"RPC request timed out: {method}") from e
        except httpx.HTTPError as e:
            logger.warning("rpc_http_error", method=method, error=str(e))
            raise ChainRpcError(f"RPC request failed: {e}") from e
        except ValueError as e:
            raise ChainRpcError(f"RPC returned invalid JSON for {method}") from e

        if not isinstance(data, dict):
            logger.warning("rpc_unexpected_reply", method=method, reply_type=type(data).__name__)
            raise ChainRpcError(f"RPC returned an unexpected reply for {method}")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise ChainRpcError(
                    f"RPC error: {error.get('message', 'unknown')}",
                    rpc_code=error.get("code"),
                )
            raise ChainRpcError(f"RPC error: {error}")

        return data.get("result")

    async def get_confirmed_transaction(self, signature: str) -> ConfirmedTransaction | None:
        """
        Fetch a confirmed transaction with parsed instructions.

        Returns:
            The transaction, or None if the node does not know it (yet)
        """
        result = await self._call("getTransaction", [signature, GET_TRANSACTION_CONFIG])
        if not result:
            return None
        return ConfirmedTransaction.from_rpc(signature, result)

    async def get_balance(self, address: str) -> int:
        """Account balance in lamports."""
        result = await self._call("getBalance", [address, {"commitment": "confirmed"}])
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)
