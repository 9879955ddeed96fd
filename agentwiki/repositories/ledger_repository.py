"""
Ledger Repositories

Verified deposits and agent-to-agent payments. Rows are immutable once
written and the transaction signature is unique across each table.
"""

from typing import Any

from agentwiki.models.base import TransactionStatus
from agentwiki.models.ledger import Deposit, Payment
from agentwiki.repositories.base import BaseRepository

PAYMENT_LIST_LIMIT = 100


class DepositRepository(BaseRepository[Deposit]):
    table_name = "deposits"
    model_class = Deposit

    def create(
        self,
        agent_id: str,
        wallet_address: str,
        amount: float,
        tx_signature: str,
    ) -> Deposit:
        deposit = Deposit(
            id=self._generate_id(),
            agent_id=agent_id,
            wallet_address=wallet_address,
            amount=amount,
            tx_signature=tx_signature,
            created_at=self._now(),
        )
        self._insert({
            "id": deposit.id,
            "agent_id": agent_id,
            "wallet_address": wallet_address,
            "amount": amount,
            "tx_signature": tx_signature,
            "status": TransactionStatus.CONFIRMED.value,
            "created_at": deposit.created_at.isoformat(),
        })
        return deposit

    def signature_exists(self, tx_signature: str) -> bool:
        return self.db.fetch_value(
            "SELECT 1 FROM deposits WHERE tx_signature = ?", (tx_signature,)
        ) is not None

    def list_for_agent(self, agent_id: str) -> list[Deposit]:
        return self._to_models(
            self.db.fetch_all(
                "SELECT * FROM deposits WHERE agent_id = ? ORDER BY created_at DESC",
                (agent_id,),
            )
        )

    def totals(self) -> dict[str, Any]:
        row = self.db.fetch_one(
            """
            SELECT COALESCE(SUM(amount), 0) AS total_deposits,
                   COUNT(*) AS deposit_count,
                   COUNT(DISTINCT agent_id) AS unique_depositors
            FROM deposits
            WHERE status = ?
            """,
            (TransactionStatus.CONFIRMED.value,),
        )
        return row or {"total_deposits": 0.0, "deposit_count": 0, "unique_depositors": 0}


class PaymentRepository(BaseRepository[Payment]):
    table_name = "payments"
    model_class = Payment

    _SELECT_WITH_WALLETS = """
        SELECT p.*,
               s.wallet_address AS sender_wallet,
               r.wallet_address AS receiver_wallet
        FROM payments p
        JOIN agents s ON p.sender_agent_id = s.id
        JOIN agents r ON p.receiver_agent_id = r.id
    """

    def create(
        self,
        sender_agent_id: str,
        receiver_agent_id: str,
        amount: float,
        tx_signature: str,
        description: str | None = None,
    ) -> Payment:
        payment = Payment(
            id=self._generate_id(),
            sender_agent_id=sender_agent_id,
            receiver_agent_id=receiver_agent_id,
            amount=amount,
            tx_signature=tx_signature,
            description=description,
            created_at=self._now(),
        )
        self._insert({
            "id": payment.id,
            "sender_agent_id": sender_agent_id,
            "receiver_agent_id": receiver_agent_id,
            "amount": amount,
            "tx_signature": tx_signature,
            "description": description,
            "status": TransactionStatus.CONFIRMED.value,
            "created_at": payment.created_at.isoformat(),
        })
        return payment

    def signature_exists(self, tx_signature: str) -> bool:
        return self.db.fetch_value(
            "SELECT 1 FROM payments WHERE tx_signature = ?", (tx_signature,)
        ) is not None

    def get_with_wallets(self, payment_id: str) -> Payment | None:
        return self._to_model(
            self.db.fetch_one(f"{self._SELECT_WITH_WALLETS} WHERE p.id = ?", (payment_id,))
        )

    def list_for_agent(self, agent_id: str, limit: int = PAYMENT_LIST_LIMIT) -> list[Payment]:
        """Payments the agent sent or received, newest first."""
        return self._to_models(
            self.db.fetch_all(
                f"""{self._SELECT_WITH_WALLETS}
                WHERE p.sender_agent_id = ? OR p.receiver_agent_id = ?
                ORDER BY p.created_at DESC
                LIMIT ?""",
                (agent_id, agent_id, limit),
            )
        )
