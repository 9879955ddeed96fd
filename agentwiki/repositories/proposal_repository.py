"""
Proposal Repositories

Edit, governance and slash proposals with their vote tables. Each kind
has its own proposal table and a ``<kind>_votes`` table unique on
(proposal_id, voter_agent_id).
"""

from abc import abstractmethod
from typing import Any, TypeVar

from agentwiki.models.base import ProposalStatus, VoteType
from agentwiki.models.proposals import (
    EditProposal,
    GovernanceProposal,
    ProposalBase,
    ProposalKind,
    ProposalWithTally,
    SlashProposal,
    Vote,
    VoteTally,
)
from agentwiki.repositories.base import BaseRepository

P = TypeVar("P", bound=ProposalBase)


class ProposalRepository(BaseRepository[P]):
    """Operations shared by every proposal kind."""

    @property
    @abstractmethod
    def kind(self) -> ProposalKind:
        ...

    @property
    def vote_table(self) -> str:
        return f"{ProposalKind(self.kind).value}_votes"

    def _insert_proposal(self, values: dict[str, Any]) -> P:
        row = {
            "id": self._generate_id(),
            "status": ProposalStatus.PENDING.value,
            "created_at": self._now(),
            **values,
        }
        proposal = self.model_class.model_validate(row)
        self._insert(row)
        self.logger.info("proposal_created", kind=self.kind, proposal_id=proposal.id)
        return proposal

    # ═══════════════════════════════════════════════════════════════
    # STATUS
    # ═══════════════════════════════════════════════════════════════

    def set_status(self, proposal_id: str, status: ProposalStatus, **extra: Any) -> bool:
        return self._update(proposal_id, {"status": ProposalStatus(status).value, **extra})

    def list_all(self, status: ProposalStatus | None = None, limit: int = 100) -> list[P]:
        if status is None:
            rows = self.db.fetch_all(
                f"SELECT * FROM {self.table_name} ORDER BY created_at DESC LIMIT ?",
                (limit,),
            )
        else:
            rows = self.db.fetch_all(
                f"SELECT * FROM {self.table_name} WHERE status = ? ORDER BY created_at DESC LIMIT ?",
                (ProposalStatus(status).value, limit),
            )
        return self._to_models(rows)

    def list_with_tallies(
        self,
        status: ProposalStatus | None = None,
        limit: int = 100,
    ) -> list[ProposalWithTally]:
        return [
            ProposalWithTally(proposal=p, tally=self.tally(p.id))
            for p in self.list_all(status=status, limit=limit)
        ]

    # ═══════════════════════════════════════════════════════════════
    # VOTES
    # ═══════════════════════════════════════════════════════════════

    def has_voted(self, proposal_id: str, voter_agent_id: str) -> bool:
        return self.db.fetch_value(
            f"SELECT 1 FROM {self.vote_table} WHERE proposal_id = ? AND voter_agent_id = ?",
            (proposal_id, voter_agent_id),
        ) is not None

    def add_vote(self, proposal_id: str, voter_agent_id: str, vote_type: VoteType) -> Vote:
        """
        Insert a vote row.

        Raises:
            sqlite3.IntegrityError: If this voter already voted on the proposal
        """
        vote = Vote(
            id=self._generate_id(),
            proposal_id=proposal_id,
            voter_agent_id=voter_agent_id,
            vote_type=vote_type,
            created_at=self._now(),
        )
        self.db.execute(
            f"""INSERT INTO {self.vote_table}
                (id, proposal_id, voter_agent_id, vote_type, created_at)
                VALUES (?, ?, ?, ?, ?)""",
            (
                vote.id,
                proposal_id,
                voter_agent_id,
                VoteType(vote_type).value,
                vote.created_at.isoformat(),
            ),
        )
        return vote

    def get_votes(self, proposal_id: str) -> list[Vote]:
        rows = self.db.fetch_all(
            f"SELECT * FROM {self.vote_table} WHERE proposal_id = ? ORDER BY created_at ASC",
            (proposal_id,),
        )
        return [Vote.model_validate(row) for row in rows]

    def tally(self, proposal_id: str) -> VoteTally:
        """Count votes from the vote rows themselves."""
        row = self.db.fetch_one(
            f"""
            SELECT COALESCE(SUM(CASE WHEN vote_type = 'approve' THEN 1 ELSE 0 END), 0) AS approve,
                   COALESCE(SUM(CASE WHEN vote_type = 'reject' THEN 1 ELSE 0 END), 0) AS reject
            FROM {self.vote_table}
            WHERE proposal_id = ?
            """,
            (proposal_id,),
        )
        return VoteTally.model_validate(row or {})


class EditProposalRepository(ProposalRepository[EditProposal]):
    table_name = "edit_proposals"
    model_class = EditProposal
    kind = ProposalKind.EDIT

    def create(
        self,
        article_id: str,
        proposer_agent_id: str,
        original_content: str,
        proposed_content: str,
        reason: str | None = None,
    ) -> EditProposal:
        return self._insert_proposal({
            "article_id": article_id,
            "proposer_agent_id": proposer_agent_id,
            "original_content": original_content,
            "proposed_content": proposed_content,
            "reason": reason,
        })

    def list_for_article(self, article_id: str) -> list[EditProposal]:
        return self._to_models(
            self.db.fetch_all(
                "SELECT * FROM edit_proposals WHERE article_id = ? ORDER BY created_at DESC",
                (article_id,),
            )
        )


class GovernanceProposalRepository(ProposalRepository[GovernanceProposal]):
    table_name = "governance_proposals"
    model_class = GovernanceProposal
    kind = ProposalKind.GOVERNANCE

    def create(
        self,
        proposer_agent_id: str,
        title: str,
        description: str,
        amount: float,
        recipient_address: str | None = None,
    ) -> GovernanceProposal:
        return self._insert_proposal({
            "proposer_agent_id": proposer_agent_id,
            "title": title,
            "description": description,
            "amount": amount,
            "recipient_address": recipient_address,
        })


class SlashProposalRepository(ProposalRepository[SlashProposal]):
    table_name = "slash_proposals"
    model_class = SlashProposal
    kind = ProposalKind.SLASH

    def create(
        self,
        proposer_agent_id: str,
        target_agent_id: str,
        reason: str,
        article_id: str | None = None,
    ) -> SlashProposal:
        """
        Raises:
            sqlite3.IntegrityError: If a pending proposal already targets the agent
        """
        return self._insert_proposal({
            "proposer_agent_id": proposer_agent_id,
            "target_agent_id": target_agent_id,
            "article_id": article_id,
            "reason": reason,
            "slashed_amount": 0.0,
        })

    def has_pending_for_target(self, target_agent_id: str) -> bool:
        return self.db.fetch_value(
            "SELECT 1 FROM slash_proposals WHERE target_agent_id = ? AND status = ?",
            (target_agent_id, ProposalStatus.PENDING.value),
        ) is not None
