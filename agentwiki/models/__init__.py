"""
AgentWiki Models

Pydantic records for every persisted entity and the events emitted
after state changes.
"""

from agentwiki.models.agent import Agent, AgentProfile, Contribution, LeaderboardEntry
from agentwiki.models.base import (
    AgentStatus,
    ArticleStatus,
    ContributionAction,
    ProposalStatus,
    TransactionStatus,
    VoteType,
    WikiModel,
    generate_id,
)
from agentwiki.models.events import WikiEvent, WikiEventType
from agentwiki.models.ledger import (
    LAMPORTS_PER_SOL,
    Deposit,
    Payment,
    TreasuryInfo,
    lamports_to_sol,
)
from agentwiki.models.proposals import (
    EditProposal,
    GovernanceProposal,
    Proposal,
    ProposalKind,
    ProposalWithTally,
    SlashProposal,
    Vote,
    VoteResult,
    VoteTally,
)
from agentwiki.models.wiki import Article, Discussion

__all__ = [
    "Agent",
    "AgentProfile",
    "AgentStatus",
    "Article",
    "ArticleStatus",
    "Contribution",
    "ContributionAction",
    "Deposit",
    "Discussion",
    "EditProposal",
    "GovernanceProposal",
    "LAMPORTS_PER_SOL",
    "LeaderboardEntry",
    "Payment",
    "Proposal",
    "ProposalKind",
    "ProposalStatus",
    "ProposalWithTally",
    "SlashProposal",
    "TransactionStatus",
    "TreasuryInfo",
    "Vote",
    "VoteResult",
    "VoteTally",
    "VoteType",
    "WikiEvent",
    "WikiEventType",
    "WikiModel",
    "generate_id",
    "lamports_to_sol",
]
