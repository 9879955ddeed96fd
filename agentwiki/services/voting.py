"""
Voting Engine

Threshold voting for edit, governance and slash proposals.

Every vote is one single-writer transaction: load the proposal, check it
is still pending and the voter is eligible, insert the vote, award
reputation, recount from the vote rows, and when a side reaches the
threshold apply the kind's side effect and close the proposal. Because
the whole unit runs as the only writer, exactly one vote can ever cross
the threshold and the side effect runs once.
"""

import sqlite3
from dataclasses import dataclass

import structlog

from agentwiki.database.client import Database
from agentwiki.exceptions import (
    AlreadyDecidedError,
    AuthError,
    DuplicateVoteError,
    NotFoundError,
    SelfVoteForbiddenError,
    ValidationError,
)
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent
from agentwiki.models.base import ContributionAction, ProposalStatus, VoteType
from agentwiki.models.events import WikiEventType
from agentwiki.models.proposals import (
    EditProposal,
    ProposalBase,
    ProposalKind,
    SlashProposal,
    VoteResult,
    VoteTally,
)
from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.proposal_repository import (
    EditProposalRepository,
    GovernanceProposalRepository,
    ProposalRepository,
    SlashProposalRepository,
)
from agentwiki.repositories.wiki_repository import ArticleRepository
from agentwiki.services.gating import ensure_deposit
from agentwiki.services.reputation import ReputationLedger

logger = structlog.get_logger(__name__)

VOTE_THRESHOLD = 3


@dataclass(frozen=True)
class VoteLane:
    """Per-kind voting rules."""

    kind: ProposalKind
    label: str
    event_prefix: str
    requires_deposit: bool
    awards_reputation: bool


def decide_outcome(tally: VoteTally, threshold: int = VOTE_THRESHOLD) -> ProposalStatus | None:
    """First side to reach the threshold wins; approvals are checked first."""
    if tally.approve >= threshold:
        return ProposalStatus.APPROVED
    if tally.reject >= threshold:
        return ProposalStatus.REJECTED
    return None


class VotingEngine:
    def __init__(
        self,
        db: Database,
        bus: MessageBus,
        reputation: ReputationLedger,
        min_deposit: float,
        slash_vote_reputation: bool = True,
    ):
        self._db = db
        self._bus = bus
        self._reputation = reputation
        self._min_deposit = min_deposit
        self._agents = AgentRepository(db)
        self._articles = ArticleRepository(db)
        self._repositories: dict[ProposalKind, ProposalRepository] = {
            ProposalKind.EDIT: EditProposalRepository(db),
            ProposalKind.GOVERNANCE: GovernanceProposalRepository(db),
            ProposalKind.SLASH: SlashProposalRepository(db),
        }
        self._lanes: dict[ProposalKind, VoteLane] = {
            ProposalKind.EDIT: VoteLane(
                kind=ProposalKind.EDIT,
                label="Edit proposal",
                event_prefix="proposal",
                requires_deposit=False,
                awards_reputation=True,
            ),
            ProposalKind.GOVERNANCE: VoteLane(
                kind=ProposalKind.GOVERNANCE,
                label="Governance proposal",
                event_prefix="governance",
                requires_deposit=True,
                awards_reputation=True,
            ),
            ProposalKind.SLASH: VoteLane(
                kind=ProposalKind.SLASH,
                label="Slash proposal",
                event_prefix="slash",
                requires_deposit=True,
                awards_reputation=slash_vote_reputation,
            ),
        }

    def lane(self, kind: ProposalKind | str) -> VoteLane:
        return self._lanes[ProposalKind(kind)]

    async def cast_vote(
        self,
        kind: ProposalKind | str,
        proposal_id: str,
        voter: Agent,
        vote_type: VoteType | str,
    ) -> VoteResult:
        """
        Cast one vote.

        Raises:
            ValidationError: vote_type is not approve/reject
            AuthError: Voter was banned since authenticating
            DepositRequiredError: Gated lane and voter below the minimum
            NotFoundError: Unknown proposal
            AlreadyDecidedError: Proposal is no longer pending
            SelfVoteForbiddenError: Slash target voting on their own proposal
            DuplicateVoteError: Voter already voted on this proposal
        """
        kind = ProposalKind(kind)
        lane = self._lanes[kind]
        repo = self._repositories[kind]

        try:
            vote_type = VoteType.from_string(vote_type) if isinstance(vote_type, str) else vote_type
        except ValueError as e:
            raise ValidationError(str(e)) from e

        slashed_amount: float | None = None
        try:
            with self._db.transaction():
                current = self._agents.get_by_id(voter.id)
                if current is None or not current.is_active:
                    raise AuthError("Agent is not active")
                if lane.requires_deposit:
                    ensure_deposit(current.deposit_amount, self._min_deposit)

                proposal = repo.get_by_id(proposal_id)
                if proposal is None:
                    raise NotFoundError(f"{lane.label} not found")
                if not proposal.is_pending:
                    raise AlreadyDecidedError(f"Proposal is already {proposal.status}")
                if isinstance(proposal, SlashProposal) and proposal.target_agent_id == voter.id:
                    raise SelfVoteForbiddenError()
                if repo.has_voted(proposal_id, voter.id):
                    raise DuplicateVoteError()

                vote = repo.add_vote(proposal_id, voter.id, vote_type)
                if lane.awards_reputation:
                    self._reputation.record(
                        voter.id,
                        ContributionAction.VOTE,
                        article_id=getattr(proposal, "article_id", None),
                    )

                tally = repo.tally(proposal_id)
                outcome = decide_outcome(tally)
                if outcome is not None:
                    slashed_amount = self._close(repo, proposal, outcome)
        except sqlite3.IntegrityError as e:
            raise DuplicateVoteError() from e

        status = outcome or ProposalStatus.PENDING
        logger.info(
            "vote_cast",
            kind=kind.value,
            proposal_id=proposal_id,
            voter_agent_id=voter.id,
            vote_type=VoteType(vote_type).value,
            approve=tally.approve,
            reject=tally.reject,
            status=status.value,
        )
        self._publish(lane, proposal, vote_type, tally, outcome, slashed_amount)

        return VoteResult(
            kind=kind,
            proposal_id=proposal_id,
            vote=vote,
            status=status,
            tally=tally,
            decided=outcome is not None,
            slashed_amount=slashed_amount,
        )

    def _close(
        self,
        repo: ProposalRepository,
        proposal: ProposalBase,
        outcome: ProposalStatus,
    ) -> float | None:
        """
        Apply the side effect for a decided proposal and set its status.

        Runs inside the vote's transaction. Returns the confiscated deposit
        for an approved slash.
        """
        if outcome == ProposalStatus.APPROVED and isinstance(proposal, EditProposal):
            self._articles.apply_content(proposal.article_id, proposal.proposed_content)
            repo.set_status(proposal.id, outcome)
            return None

        if outcome == ProposalStatus.APPROVED and isinstance(proposal, SlashProposal):
            slashed = self._agents.get_deposit(proposal.target_agent_id)
            repo.set_status(proposal.id, outcome, slashed_amount=slashed)
            self._agents.slash(proposal.target_agent_id)
            return slashed

        # Governance approval is advisory and any rejection only closes the proposal
        repo.set_status(proposal.id, outcome)
        return None

    def _publish(
        self,
        lane: VoteLane,
        proposal: ProposalBase,
        vote_type: VoteType,
        tally: VoteTally,
        outcome: ProposalStatus | None,
        slashed_amount: float | None,
    ) -> None:
        self._bus.publish(
            f"{lane.event_prefix}:voted",
            id=proposal.id,
            summary=f"{VoteType(vote_type).value} ({tally.approve} approve / {tally.reject} reject)",
        )
        if outcome is None:
            return

        if isinstance(proposal, SlashProposal) and outcome == ProposalStatus.APPROVED:
            summary = f"Agent slashed: {slashed_amount} SOL confiscated"
        else:
            summary = f"{lane.label} {outcome.value}"
        self._bus.publish(f"{lane.event_prefix}:executed", id=proposal.id, summary=summary)

        if isinstance(proposal, EditProposal) and outcome == ProposalStatus.APPROVED:
            self._bus.publish(
                WikiEventType.ARTICLE_UPDATED,
                id=proposal.article_id,
                summary="Edit proposal approved",
            )
