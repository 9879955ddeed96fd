"""
Contribution Repository

Append-only log of reputation-earning actions and the leaderboard view
built from it.
"""

from agentwiki.models.agent import Contribution, LeaderboardEntry
from agentwiki.models.base import AgentStatus, ContributionAction
from agentwiki.repositories.base import BaseRepository


class ContributionRepository(BaseRepository[Contribution]):
    table_name = "contributions"
    model_class = Contribution

    def create(
        self,
        agent_id: str,
        action: ContributionAction,
        article_id: str | None = None,
    ) -> Contribution:
        contribution = Contribution(
            id=self._generate_id(),
            agent_id=agent_id,
            action_type=action,
            article_id=article_id,
            created_at=self._now(),
        )
        self._insert({
            "id": contribution.id,
            "agent_id": agent_id,
            "action_type": ContributionAction(action).value,
            "article_id": article_id,
            "created_at": contribution.created_at.isoformat(),
        })
        return contribution

    def list_for_agent(self, agent_id: str) -> list[Contribution]:
        return self._to_models(
            self.db.fetch_all(
                "SELECT * FROM contributions WHERE agent_id = ? ORDER BY created_at DESC",
                (agent_id,),
            )
        )

    def leaderboard(self, limit: int = 100) -> list[LeaderboardEntry]:
        rows = self.db.fetch_all(
            """
            SELECT a.id, a.wallet_address, a.reputation_score, a.created_at,
                   COUNT(c.id) AS contribution_count,
                   MAX(c.created_at) AS last_contribution
            FROM agents a
            LEFT JOIN contributions c ON a.id = c.agent_id
            WHERE a.status = ?
            GROUP BY a.id
            ORDER BY a.reputation_score DESC, contribution_count DESC
            LIMIT ?
            """,
            (AgentStatus.ACTIVE.value, limit),
        )
        return [LeaderboardEntry.model_validate(row) for row in rows]
