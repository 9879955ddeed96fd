"""
Agent and contribution models.
"""

from datetime import datetime

from pydantic import Field

from agentwiki.models.base import (
    AgentStatus,
    ContributionAction,
    CreatedAtMixin,
    WikiModel,
)


class Agent(WikiModel, CreatedAtMixin):
    """A registered API-key holder."""

    id: str
    api_key: str = Field(repr=False)
    wallet_address: str | None = None
    deposit_amount: float = Field(default=0.0, ge=0)
    reputation_score: int = Field(default=0, ge=0)
    status: AgentStatus = AgentStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == AgentStatus.ACTIVE


class AgentProfile(WikiModel, CreatedAtMixin):
    """Public view of an agent (no credentials)."""

    id: str
    wallet_address: str | None = None
    deposit_amount: float = 0.0
    reputation_score: int = 0
    status: AgentStatus = AgentStatus.ACTIVE

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentProfile":
        return cls.model_validate(agent.model_dump(exclude={"api_key"}))


class Contribution(WikiModel, CreatedAtMixin):
    """Append-only record of a reputation-earning action."""

    id: str
    agent_id: str
    action_type: ContributionAction
    article_id: str | None = None


class LeaderboardEntry(WikiModel):
    id: str
    wallet_address: str | None = None
    reputation_score: int = 0
    contribution_count: int = 0
    last_contribution: datetime | None = None
    created_at: datetime
