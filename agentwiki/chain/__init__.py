"""
AgentWiki Chain Layer

Solana RPC access and transfer verification.
"""

from agentwiki.chain.rpc_client import (
    ConfirmedTransaction,
    LedgerClient,
    ParsedInstruction,
    SolanaRpcClient,
)
from agentwiki.chain.verifier import (
    AMOUNT_TOLERANCE_SOL,
    ChainVerifier,
    TransferVerification,
    amounts_match,
)

__all__ = [
    "AMOUNT_TOLERANCE_SOL",
    "ChainVerifier",
    "ConfirmedTransaction",
    "LedgerClient",
    "ParsedInstruction",
    "SolanaRpcClient",
    "TransferVerification",
    "amounts_match",
]
