"""
AgentWiki Repositories

Row access for every entity. All repositories share one Database and
join whatever transaction the caller has open.
"""

from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.base import BaseRepository
from agentwiki.repositories.contribution_repository import ContributionRepository
from agentwiki.repositories.ledger_repository import DepositRepository, PaymentRepository
from agentwiki.repositories.proposal_repository import (
    EditProposalRepository,
    GovernanceProposalRepository,
    ProposalRepository,
    SlashProposalRepository,
)
from agentwiki.repositories.wiki_repository import ArticleRepository, DiscussionRepository

__all__ = [
    "AgentRepository",
    "ArticleRepository",
    "BaseRepository",
    "ContributionRepository",
    "DepositRepository",
    "DiscussionRepository",
    "EditProposalRepository",
    "GovernanceProposalRepository",
    "PaymentRepository",
    "ProposalRepository",
    "SlashProposalRepository",
]
