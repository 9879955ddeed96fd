"""
Agent Repository

Registration, wallet links, deposit balances, reputation and bans.
"""

from agentwiki.models.agent import Agent
from agentwiki.models.base import AgentStatus
from agentwiki.repositories.base import BaseRepository


class AgentRepository(BaseRepository[Agent]):
    table_name = "agents"
    model_class = Agent

    def create(self, api_key: str, wallet_address: str | None = None) -> Agent:
        """
        Insert a new active agent with zero deposit and reputation.

        Raises:
            sqlite3.IntegrityError: If the API key or wallet is taken
        """
        agent = Agent(
            id=self._generate_id(),
            api_key=api_key,
            wallet_address=wallet_address,
            created_at=self._now(),
        )
        self._insert({
            "id": agent.id,
            "api_key": agent.api_key,
            "wallet_address": agent.wallet_address,
            "deposit_amount": 0.0,
            "reputation_score": 0,
            "status": AgentStatus.ACTIVE.value,
            "created_at": agent.created_at.isoformat(),
        })
        self.logger.info("agent_created", agent_id=agent.id, has_wallet=wallet_address is not None)
        return agent

    def get_by_api_key(self, api_key: str) -> Agent | None:
        return self._to_model(
            self.db.fetch_one("SELECT * FROM agents WHERE api_key = ?", (api_key,))
        )

    def get_by_wallet(self, wallet_address: str) -> Agent | None:
        return self._to_model(
            self.db.fetch_one("SELECT * FROM agents WHERE wallet_address = ?", (wallet_address,))
        )

    def wallet_claimed_by_other(self, wallet_address: str, agent_id: str) -> bool:
        return self.db.fetch_value(
            "SELECT 1 FROM agents WHERE wallet_address = ? AND id != ?",
            (wallet_address, agent_id),
        ) is not None

    def set_wallet(self, agent_id: str, wallet_address: str) -> bool:
        return self._update(agent_id, {"wallet_address": wallet_address})

    def add_deposit(self, agent_id: str, amount: float) -> None:
        self.db.execute(
            "UPDATE agents SET deposit_amount = deposit_amount + ? WHERE id = ?",
            (amount, agent_id),
        )

    def add_reputation(self, agent_id: str, points: int) -> None:
        self.db.execute(
            "UPDATE agents SET reputation_score = reputation_score + ? WHERE id = ?",
            (points, agent_id),
        )

    def get_deposit(self, agent_id: str) -> float:
        return float(
            self.db.fetch_value("SELECT deposit_amount FROM agents WHERE id = ?", (agent_id,)) or 0.0
        )

    def slash(self, agent_id: str) -> None:
        """Zero the deposit and ban. Terminal: nothing sets an agent active again."""
        self.db.execute(
            "UPDATE agents SET deposit_amount = 0, status = ? WHERE id = ?",
            (AgentStatus.BANNED.value, agent_id),
        )
        self.logger.warning("agent_slashed", agent_id=agent_id)
