"""
Governance and Slash API Routes

Treasury proposals, the treasury summary, and slash reports.
"""

from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from agentwiki.api.dependencies import CurrentAgentDep, WikiAppDep
from agentwiki.api.routes.articles import VoteRequest
from agentwiki.models.base import ProposalStatus
from agentwiki.models.proposals import ProposalKind, ProposalWithTally

router = APIRouter(tags=["governance"])


class CreateGovernanceProposalRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    amount: float
    recipient_address: str | None = Field(default=None, max_length=64)


class CreateSlashProposalRequest(BaseModel):
    target_agent_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=2000)
    article_id: str | None = None


def _with_votes(items: list[ProposalWithTally]) -> list[dict[str, Any]]:
    return [
        {
            **item.proposal.model_dump(mode="json"),
            "approve_count": item.tally.approve,
            "reject_count": item.tally.reject,
        }
        for item in items
    ]


# =============================================================================
# Governance
# =============================================================================

@router.post("/governance/proposals", status_code=status.HTTP_201_CREATED)
async def create_governance_proposal(
    request: CreateGovernanceProposalRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    proposal = await wiki_app.governance.create_proposal(
        agent,
        request.title,
        request.description,
        request.amount,
        recipient_address=request.recipient_address,
    )
    return {"success": True, "proposal": proposal.model_dump(mode="json")}


@router.get("/governance/proposals")
async def list_governance_proposals(
    wiki_app: WikiAppDep,
    proposal_status: ProposalStatus | None = Query(default=None, alias="status"),
) -> dict[str, Any]:
    proposals = await wiki_app.governance.list_proposals(status=proposal_status)
    return {"success": True, "proposals": _with_votes(proposals)}


@router.post("/governance/proposals/{proposal_id}/vote")
async def vote_on_governance_proposal(
    proposal_id: str,
    request: VoteRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    result = await wiki_app.voting.cast_vote(
        ProposalKind.GOVERNANCE, proposal_id, agent, request.vote_type
    )
    return {
        "success": True,
        "status": result.status,
        "votes": result.tally.model_dump(),
        "decided": result.decided,
    }


@router.get("/governance/treasury")
async def get_treasury(wiki_app: WikiAppDep) -> dict[str, Any]:
    treasury = await wiki_app.governance.get_treasury()
    return {"success": True, "treasury": treasury.model_dump(mode="json")}


# =============================================================================
# Slash
# =============================================================================

@router.post("/slash/proposals", status_code=status.HTTP_201_CREATED)
async def create_slash_proposal(
    request: CreateSlashProposalRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    proposal = await wiki_app.slash.create_proposal(
        agent,
        request.target_agent_id,
        request.reason,
        article_id=request.article_id,
    )
    return {"success": True, "proposal": proposal.model_dump(mode="json")}


@router.get("/slash/proposals")
async def list_slash_proposals(
    wiki_app: WikiAppDep,
    proposal_status: ProposalStatus | None = Query(default=None, alias="status"),
) -> dict[str, Any]:
    proposals = await wiki_app.slash.list_proposals(status=proposal_status)
    return {"success": True, "proposals": _with_votes(proposals)}


@router.post("/slash/proposals/{proposal_id}/vote")
async def vote_on_slash_proposal(
    proposal_id: str,
    request: VoteRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    result = await wiki_app.voting.cast_vote(ProposalKind.SLASH, proposal_id, agent, request.vote_type)
    response: dict[str, Any] = {
        "success": True,
        "status": result.status,
        "votes": result.tally.model_dump(),
        "decided": result.decided,
    }
    if result.slashed_amount is not None:
        response["slashed_amount"] = result.slashed_amount
    return response
