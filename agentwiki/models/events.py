"""
Event Models

Notifications published to live listeners after a state change commits.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import Field

from agentwiki.models.base import WikiModel


class WikiEventType(str, Enum):
    """Types of events emitted by AgentWiki."""

    ARTICLE_CREATED = "article:created"
    ARTICLE_UPDATED = "article:updated"
    DISCUSSION_CREATED = "discussion:created"

    PROPOSAL_CREATED = "proposal:created"
    PROPOSAL_VOTED = "proposal:voted"
    PROPOSAL_EXECUTED = "proposal:executed"

    GOVERNANCE_CREATED = "governance:created"
    GOVERNANCE_VOTED = "governance:voted"
    GOVERNANCE_EXECUTED = "governance:executed"

    SLASH_CREATED = "slash:created"
    SLASH_VOTED = "slash:voted"
    SLASH_EXECUTED = "slash:executed"

    DEPOSIT_RECORDED = "deposit:recorded"
    PAYMENT_RECORDED = "payment:recorded"

    AGENT_REGISTERED = "agent:registered"


DEFAULT_TOPIC = "wiki"


class WikiEvent(WikiModel):
    type: str
    id: str | None = None
    summary: str | None = None
    topic: str = DEFAULT_TOPIC
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict[str, Any]:
        """Wire shape sent to stream listeners."""
        return self.model_dump(mode="json", exclude={"topic"}, exclude_none=True)
