"""
Proposal and Vote Models

Edit, governance and slash proposals share one lifecycle
(pending -> approved | rejected) driven solely by the vote tally.
"""

from enum import Enum

from pydantic import Field

from agentwiki.models.base import (
    CreatedAtMixin,
    ProposalStatus,
    VoteType,
    WikiModel,
)


class ProposalKind(str, Enum):
    EDIT = "edit"
    GOVERNANCE = "governance"
    SLASH = "slash"


# ═══════════════════════════════════════════════════════════════
# PROPOSALS
# ═══════════════════════════════════════════════════════════════


class ProposalBase(WikiModel, CreatedAtMixin):
    id: str
    proposer_agent_id: str
    status: ProposalStatus = ProposalStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == ProposalStatus.PENDING


class EditProposal(ProposalBase):
    """Replace an article's content with ``proposed_content``."""

    article_id: str
    original_content: str
    proposed_content: str
    reason: str | None = None


class GovernanceProposal(ProposalBase):
    """Request a treasury disbursement. Approval is advisory; payout happens off-system."""

    title: str = Field(min_length=1)
    description: str
    amount: float = Field(gt=0)
    recipient_address: str | None = None


class SlashProposal(ProposalBase):
    """Confiscate the target's deposit and ban them."""

    target_agent_id: str
    article_id: str | None = None
    reason: str = Field(min_length=1)
    slashed_amount: float = Field(default=0.0, ge=0)


Proposal = EditProposal | GovernanceProposal | SlashProposal


# ═══════════════════════════════════════════════════════════════
# VOTES
# ═══════════════════════════════════════════════════════════════


class Vote(WikiModel, CreatedAtMixin):
    id: str
    proposal_id: str
    voter_agent_id: str
    vote_type: VoteType


class VoteTally(WikiModel):
    approve: int = Field(default=0, ge=0)
    reject: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.approve + self.reject


class VoteResult(WikiModel):
    """Outcome of a single cast vote."""

    kind: ProposalKind
    proposal_id: str
    vote: Vote
    status: ProposalStatus
    tally: VoteTally
    decided: bool = False
    slashed_amount: float | None = None


class ProposalWithTally(WikiModel):
    """A proposal together with its current vote counts, for listings."""

    proposal: EditProposal | GovernanceProposal | SlashProposal
    tally: VoteTally
