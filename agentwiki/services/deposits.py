"""
Deposit Recorder

Credits an agent's deposit balance from a verified transfer of SOL from
the agent's linked wallet to the treasury.

Usage:
    recorder = DepositRecorder(db, verifier, bus, treasury_address)
    deposit = await recorder.record_deposit(agent, tx_signature, 0.01)
"""

import sqlite3

import structlog

from agentwiki.chain.verifier import ChainVerifier
from agentwiki.database.client import Database
from agentwiki.exceptions import (
    ConfigurationError,
    DuplicateTransactionError,
    NoWalletLinkedError,
    ValidationError,
    VerificationError,
)
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent
from agentwiki.models.events import WikiEventType
from agentwiki.models.ledger import Deposit
from agentwiki.monitoring.logging import log_duration
from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.ledger_repository import DepositRepository

logger = structlog.get_logger(__name__)


class DepositRecorder:
    """
    Records treasury deposits.

    Each transaction signature credits at most once: the duplicate check
    runs before verification and again inside the write transaction, and
    the unique constraint on ``deposits.tx_signature`` backs both.
    """

    def __init__(
        self,
        db: Database,
        verifier: ChainVerifier,
        bus: MessageBus,
        treasury_address: str | None,
    ):
        self._db = db
        self._verifier = verifier
        self._bus = bus
        self._treasury_address = treasury_address
        self._agents = AgentRepository(db)
        self._deposits = DepositRepository(db)

    async def record_deposit(self, agent: Agent, tx_signature: str, amount: float) -> Deposit:
        """
        Verify and record a deposit.

        Args:
            agent: Authenticated agent
            tx_signature: Solana transaction signature
            amount: Claimed amount in SOL

        Raises:
            ValidationError: Missing signature or non-positive amount
            NoWalletLinkedError: Agent has no wallet
            ConfigurationError: No treasury wallet configured
            DuplicateTransactionError: Signature already recorded
            VerificationError: Transaction does not prove the transfer
        """
        tx_signature = (tx_signature or "").strip()
        if not tx_signature or amount is None:
            raise ValidationError("tx_signature and amount are required")
        if amount <= 0:
            raise ValidationError("amount must be a positive number")
        if not agent.wallet_address:
            raise NoWalletLinkedError()
        if not self._treasury_address:
            raise ConfigurationError("Treasury wallet is not configured")
        if self._deposits.signature_exists(tx_signature):
            raise DuplicateTransactionError()

        with log_duration(logger, "deposit_verification", level="debug", tx_signature=tx_signature):
            verification = await self._verifier.check_transfer(
                tx_signature,
                expected_sender=agent.wallet_address,
                expected_recipient=self._treasury_address,
                expected_amount=amount,
            )
        if not verification.verified:
            assert verification.reason is not None
            logger.info(
                "deposit_rejected",
                agent_id=agent.id,
                tx_signature=tx_signature,
                reason=verification.reason.value,
            )
            raise VerificationError(verification.reason)

        try:
            with self._db.transaction():
                if self._deposits.signature_exists(tx_signature):
                    raise DuplicateTransactionError()
                deposit = self._deposits.create(
                    agent_id=agent.id,
                    wallet_address=agent.wallet_address,
                    amount=amount,
                    tx_signature=tx_signature,
                )
                self._agents.add_deposit(agent.id, amount)
        except sqlite3.IntegrityError as e:
            raise DuplicateTransactionError() from e

        logger.info("deposit_recorded", agent_id=agent.id, deposit_id=deposit.id, amount=amount)
        self._bus.publish(
            WikiEventType.DEPOSIT_RECORDED,
            id=deposit.id,
            summary=f"{amount} SOL deposit",
        )
        return deposit

    async def list_deposits(self, agent_id: str) -> list[Deposit]:
        return self._deposits.list_for_agent(agent_id)
