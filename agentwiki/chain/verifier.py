"""
Chain Verifier

Decides whether a confirmed Solana transaction contains a native SOL
transfer from an expected sender to an expected recipient for an
expected amount.
"""

from dataclasses import dataclass

import structlog

from agentwiki.chain.rpc_client import LedgerClient, ParsedInstruction
from agentwiki.exceptions import ChainRpcError, VerificationFailure
from agentwiki.models.ledger import lamports_to_sol

logger = structlog.get_logger(__name__)

# Absolute SOL tolerance when comparing on-chain and claimed amounts
AMOUNT_TOLERANCE_SOL = 0.000001


def amounts_match(lamports: int, expected_sol: float) -> bool:
    return abs(lamports_to_sol(lamports) - expected_sol) < AMOUNT_TOLERANCE_SOL


def transfer_matches(
    instruction: ParsedInstruction,
    sender: str,
    recipient: str,
    amount_sol: float,
) -> bool:
    if not instruction.is_system_transfer:
        return False
    info = instruction.info
    try:
        lamports = int(info.get("lamports", -1))
    except (TypeError, ValueError):
        return False
    return (
        info.get("source") == sender
        and info.get("destination") == recipient
        and amounts_match(lamports, amount_sol)
    )


@dataclass
class TransferVerification:
    """Result of transfer verification."""

    verified: bool
    reason: VerificationFailure | None = None
    detail: str | None = None

    @property
    def retryable(self) -> bool:
        return self.reason is not None and self.reason.retryable


class ChainVerifier:
    """
    Verifies native SOL transfers.

    Fails closed: any doubt (unknown transaction, on-chain failure, RPC
    trouble, no matching transfer) is a rejection. Side-effect free, so
    callers may retry freely.
    """

    def __init__(self, client: LedgerClient):
        self.client = client

    async def check_transfer(
        self,
        tx_signature: str,
        expected_sender: str,
        expected_recipient: str,
        expected_amount: float,
    ) -> TransferVerification:
        """
        Verify a transfer and explain a rejection.

        The first system-program transfer that matches all three expected
        values wins; other instructions in the transaction are ignored.
        """
        try:
            tx = await self.client.get_confirmed_transaction(tx_signature)
        except ChainRpcError as e:
            logger.warning("transfer_verification_rpc_failed", tx_signature=tx_signature, error=str(e))
            return TransferVerification(False, VerificationFailure.RPC_UNAVAILABLE, str(e))

        if tx is None:
            return TransferVerification(False, VerificationFailure.NOT_FOUND)

        if not tx.succeeded:
            return TransferVerification(False, VerificationFailure.FAILED_ON_CHAIN, str(tx.error))

        transfers = [ix for ix in tx.instructions if ix.is_system_transfer]
        if not transfers:
            return TransferVerification(False, VerificationFailure.NO_TRANSFER)

        for instruction in transfers:
            if transfer_matches(instruction, expected_sender, expected_recipient, expected_amount):
                logger.info(
                    "transfer_verified",
                    tx_signature=tx_signature,
                    sender=expected_sender,
                    recipient=expected_recipient,
                    amount=expected_amount,
                )
                return TransferVerification(True)

        logger.info(
            "transfer_mismatch",
            tx_signature=tx_signature,
            transfers=len(transfers),
        )
        return TransferVerification(False, VerificationFailure.MISMATCH)

    async def verify_transfer(
        self,
        tx_signature: str,
        expected_sender: str,
        expected_recipient: str,
        expected_amount: float,
    ) -> bool:
        result = await self.check_transfer(
            tx_signature, expected_sender, expected_recipient, expected_amount
        )
        return result.verified
