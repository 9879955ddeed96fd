"""
Payment Recorder

Records verified agent-to-agent SOL transfers. Payments move no internal
balance and earn no reputation; they are an auditable record only.
"""

import sqlite3

import structlog

from agentwiki.chain.verifier import ChainVerifier
from agentwiki.database.client import Database
from agentwiki.exceptions import (
    AuthError,
    DuplicateTransactionError,
    ForbiddenError,
    NoWalletLinkedError,
    NotFoundError,
    ReceiverInactiveError,
    ReceiverNotFoundError,
    ReceiverNoWalletError,
    SelfPaymentError,
    ValidationError,
    VerificationError,
)
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent
from agentwiki.models.events import WikiEventType
from agentwiki.models.ledger import Payment
from agentwiki.monitoring.logging import log_duration
from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.ledger_repository import PaymentRepository
from agentwiki.services.gating import ensure_deposit

logger = structlog.get_logger(__name__)


class PaymentRecorder:
    def __init__(
        self,
        db: Database,
        verifier: ChainVerifier,
        bus: MessageBus,
        min_deposit: float,
    ):
        self._db = db
        self._verifier = verifier
        self._bus = bus
        self._min_deposit = min_deposit
        self._agents = AgentRepository(db)
        self._payments = PaymentRepository(db)

    async def record_payment(
        self,
        sender: Agent,
        receiver_agent_id: str,
        tx_signature: str,
        amount: float,
        description: str | None = None,
    ) -> Payment:
        """
        Verify and record a payment from ``sender`` to another agent.

        Preconditions are checked in order and the first failure is raised:
        deposit gate, required fields, not self, sender wallet, receiver
        exists / is active / has a wallet, positive amount, unrecorded
        signature, on-chain transfer.
        """
        ensure_deposit(sender.deposit_amount, self._min_deposit)

        tx_signature = (tx_signature or "").strip()
        if not receiver_agent_id or not tx_signature or amount is None:
            raise ValidationError("receiver_agent_id, tx_signature and amount are required")
        if receiver_agent_id == sender.id:
            raise SelfPaymentError()
        if not sender.wallet_address:
            raise NoWalletLinkedError()

        receiver = self._agents.get_by_id(receiver_agent_id)
        if receiver is None:
            raise ReceiverNotFoundError()
        if not receiver.is_active:
            raise ReceiverInactiveError()
        if not receiver.wallet_address:
            raise ReceiverNoWalletError()

        if amount <= 0:
            raise ValidationError("amount must be a positive number")
        if self._payments.signature_exists(tx_signature):
            raise DuplicateTransactionError()

        with log_duration(logger, "payment_verification", level="debug", tx_signature=tx_signature):
            verification = await self._verifier.check_transfer(
                tx_signature,
                expected_sender=sender.wallet_address,
                expected_recipient=receiver.wallet_address,
                expected_amount=amount,
            )
        if not verification.verified:
            assert verification.reason is not None
            logger.info(
                "payment_rejected",
                sender_agent_id=sender.id,
                tx_signature=tx_signature,
                reason=verification.reason.value,
            )
            raise VerificationError(verification.reason)

        try:
            with self._db.transaction():
                current = self._agents.get_by_id(sender.id)
                if current is None or not current.is_active:
                    raise AuthError("Agent is not active")
                ensure_deposit(current.deposit_amount, self._min_deposit)
                if not self._agents.get_by_id(receiver.id).is_active:
                    raise ReceiverInactiveError()
                if self._payments.signature_exists(tx_signature):
                    raise DuplicateTransactionError()
                payment = self._payments.create(
                    sender_agent_id=sender.id,
                    receiver_agent_id=receiver.id,
                    amount=amount,
                    tx_signature=tx_signature,
                    description=description,
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateTransactionError() from e

        logger.info(
            "payment_recorded",
            payment_id=payment.id,
            sender_agent_id=sender.id,
            receiver_agent_id=receiver.id,
            amount=amount,
        )
        self._bus.publish(
            WikiEventType.PAYMENT_RECORDED,
            id=payment.id,
            summary=f"{amount} SOL payment",
        )
        return payment.model_copy(
            update={
                "sender_wallet": sender.wallet_address,
                "receiver_wallet": receiver.wallet_address,
            }
        )

    async def list_payments(self, agent_id: str) -> list[Payment]:
        """Sent and received payments, newest first."""
        return self._payments.list_for_agent(agent_id)

    async def get_payment(self, agent_id: str, payment_id: str) -> Payment:
        """
        Raises:
            NotFoundError: Unknown payment
            ForbiddenError: Agent is neither sender nor receiver
        """
        payment = self._payments.get_with_wallets(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        if agent_id not in (payment.sender_agent_id, payment.receiver_agent_id):
            raise ForbiddenError("Not authorized to view this payment")
        return payment
