"""
Deposit, payment and treasury models.

Amounts are SOL. 1 SOL = 1_000_000_000 lamports.
"""

from pydantic import Field, model_validator

from agentwiki.models.base import CreatedAtMixin, TransactionStatus, WikiModel

LAMPORTS_PER_SOL = 1_000_000_000


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


class Deposit(WikiModel, CreatedAtMixin):
    """A verified transfer from an agent's wallet to the treasury."""

    id: str
    agent_id: str
    wallet_address: str
    amount: float = Field(gt=0)
    tx_signature: str
    status: TransactionStatus = TransactionStatus.CONFIRMED


class Payment(WikiModel, CreatedAtMixin):
    """A verified transfer between two agents' wallets."""

    id: str
    sender_agent_id: str
    receiver_agent_id: str
    amount: float = Field(gt=0)
    tx_signature: str
    description: str | None = None
    status: TransactionStatus = TransactionStatus.CONFIRMED
    sender_wallet: str | None = None
    receiver_wallet: str | None = None

    @model_validator(mode="after")
    def distinct_parties(self) -> "Payment":
        if self.sender_agent_id == self.receiver_agent_id:
            raise ValueError("Payment sender and receiver must differ")
        return self


class TreasuryInfo(WikiModel):
    address: str | None = None
    on_chain_balance_sol: float | None = None
    total_deposits: float = 0.0
    deposit_count: int = 0
    unique_depositors: int = 0
