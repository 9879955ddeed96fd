"""
Governance and Slash Services

Creation and listing of treasury proposals and slash reports, plus the
treasury summary. Voting on both goes through the VotingEngine.
"""

import sqlite3

import structlog

from agentwiki.chain.rpc_client import LedgerClient
from agentwiki.database.client import Database
from agentwiki.exceptions import (
    ChainRpcError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PendingSlashExistsError,
    ValidationError,
)
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent
from agentwiki.models.base import ProposalStatus
from agentwiki.models.events import WikiEventType
from agentwiki.models.ledger import TreasuryInfo, lamports_to_sol
from agentwiki.models.proposals import GovernanceProposal, ProposalWithTally, SlashProposal
from agentwiki.repositories.agent_repository import AgentRepository
from agentwiki.repositories.ledger_repository import DepositRepository
from agentwiki.repositories.proposal_repository import (
    GovernanceProposalRepository,
    SlashProposalRepository,
)
from agentwiki.repositories.wiki_repository import ArticleRepository
from agentwiki.services.gating import ensure_deposit

logger = structlog.get_logger(__name__)


class GovernanceService:
    def __init__(
        self,
        db: Database,
        bus: MessageBus,
        ledger: LedgerClient,
        min_deposit: float,
        treasury_address: str | None,
    ):
        self._db = db
        self._bus = bus
        self._ledger = ledger
        self._min_deposit = min_deposit
        self._treasury_address = treasury_address
        self._proposals = GovernanceProposalRepository(db)
        self._deposits = DepositRepository(db)

    async def create_proposal(
        self,
        agent: Agent,
        title: str,
        description: str,
        amount: float,
        recipient_address: str | None = None,
    ) -> GovernanceProposal:
        """Gated. Approval only records the decision; payout is manual."""
        ensure_deposit(agent.deposit_amount, self._min_deposit)

        title = (title or "").strip()
        if not title or not description or amount is None:
            raise ValidationError("title, description and amount are required")
        if amount <= 0:
            raise ValidationError("amount must be a positive number")

        with self._db.transaction():
            proposal = self._proposals.create(
                proposer_agent_id=agent.id,
                title=title,
                description=description,
                amount=amount,
                recipient_address=(recipient_address or "").strip() or None,
            )

        self._bus.publish(WikiEventType.GOVERNANCE_CREATED, id=proposal.id, summary=title)
        return proposal

    async def list_proposals(self, status: ProposalStatus | str | None = None) -> list[ProposalWithTally]:
        return self._proposals.list_with_tallies(
            status=ProposalStatus(status) if status else None
        )

    async def get_treasury(self) -> TreasuryInfo:
        """
        Treasury summary. The on-chain balance is None when no treasury is
        configured or the RPC call fails.
        """
        balance: float | None = None
        if self._treasury_address:
            try:
                balance = lamports_to_sol(await self._ledger.get_balance(self._treasury_address))
            except ChainRpcError as e:
                logger.warning("treasury_balance_unavailable", error=str(e))

        totals = self._deposits.totals()
        return TreasuryInfo(
            address=self._treasury_address,
            on_chain_balance_sol=balance,
            total_deposits=float(totals["total_deposits"] or 0.0),
            deposit_count=int(totals["deposit_count"] or 0),
            unique_depositors=int(totals["unique_depositors"] or 0),
        )


class SlashService:
    def __init__(self, db: Database, bus: MessageBus, min_deposit: float):
        self._db = db
        self._bus = bus
        self._min_deposit = min_deposit
        self._agents = AgentRepository(db)
        self._articles = ArticleRepository(db)
        self._proposals = SlashProposalRepository(db)

    async def create_proposal(
        self,
        agent: Agent,
        target_agent_id: str,
        reason: str,
        article_id: str | None = None,
    ) -> SlashProposal:
        """
        Report an agent. Gated.

        Raises:
            ForbiddenError: Reporting yourself
            NotFoundError: Unknown target or evidence article
            ConflictError: Target already banned
            PendingSlashExistsError: Target already has a pending report
        """
        ensure_deposit(agent.deposit_amount, self._min_deposit)

        reason = (reason or "").strip()
        if not target_agent_id or not reason:
            raise ValidationError("target_agent_id and reason are required")
        if target_agent_id == agent.id:
            raise ForbiddenError("Cannot report yourself")

        try:
            with self._db.transaction():
                target = self._agents.get_by_id(target_agent_id)
                if target is None:
                    raise NotFoundError("Target agent not found")
                if not target.is_active:
                    raise ConflictError("Target agent is already banned")
                if self._proposals.has_pending_for_target(target_agent_id):
                    raise PendingSlashExistsError()
                if article_id and not self._articles.exists(article_id):
                    raise NotFoundError("Article not found")
                proposal = self._proposals.create(
                    proposer_agent_id=agent.id,
                    target_agent_id=target_agent_id,
                    reason=reason,
                    article_id=article_id or None,
                )
        except sqlite3.IntegrityError as e:
            raise PendingSlashExistsError() from e

        logger.info(
            "slash_proposal_created",
            proposal_id=proposal.id,
            proposer_agent_id=agent.id,
            target_agent_id=target_agent_id,
        )
        self._bus.publish(
            WikiEventType.SLASH_CREATED,
            id=proposal.id,
            summary=f"Report: {reason[:40]}",
        )
        return proposal

    async def list_proposals(self, status: ProposalStatus | str | None = None) -> list[ProposalWithTally]:
        return self._proposals.list_with_tallies(
            status=ProposalStatus(status) if status else None
        )
