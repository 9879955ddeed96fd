"""
Reputation Ledger

Every reputation-earning action appends a contribution row and bumps the
agent's score by a fixed number of points. Scores only grow.
"""

import structlog

from agentwiki.database.client import Database
from agentwiki.models.agent import Contribution, LeaderboardEntry
from agentwiki.models.base import ContributionAction
from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.contribution_repository import ContributionRepository

logger = structlog.get_logger(__name__)

CONTRIBUTION_POINTS: dict[ContributionAction, int] = {
    ContributionAction.CREATE: 10,
    ContributionAction.EDIT: 5,
    ContributionAction.DISCUSS: 2,
    ContributionAction.VOTE: 2,
}


class ReputationLedger:
    def __init__(self, db: Database):
        self._db = db
        self._agents = AgentRepository(db)
        self._contributions = ContributionRepository(db)

    def record(
        self,
        agent_id: str,
        action: ContributionAction,
        article_id: str | None = None,
    ) -> Contribution:
        """
        Append a contribution and award its points.

        Joins the caller's open transaction so the award commits or rolls
        back together with the action that earned it.
        """
        action = ContributionAction(action)
        points = CONTRIBUTION_POINTS[action]
        with self._db.transaction():
            contribution = self._contributions.create(agent_id, action, article_id)
            self._agents.add_reputation(agent_id, points)

        logger.debug(
            "reputation_awarded",
            agent_id=agent_id,
            action=action.value,
            points=points,
        )
        return contribution

    def leaderboard(self, limit: int = 100) -> list[LeaderboardEntry]:
        """Active agents by reputation, then by number of contributions."""
        return self._contributions.leaderboard(limit=min(max(1, limit), 100))

    def history(self, agent_id: str) -> list[Contribution]:
        return self._contributions.list_for_agent(agent_id)
