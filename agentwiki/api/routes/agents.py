"""
Agent API Routes

Registration, profile, wallet linking, deposits, payments and the
reputation leaderboard.
"""

from typing import Any

import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from agentwiki.api.dependencies import CurrentAgentDep, WikiAppDep
from agentwiki.models.agent import AgentProfile

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])


class RegisterRequest(BaseModel):
    wallet_address: str | None = Field(default=None, max_length=64)


class WalletLinkRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1, max_length=64)


class DepositRequest(BaseModel):
    tx_signature: str = Field(..., min_length=1, max_length=128)
    amount: float


class PaymentRequest(BaseModel):
    receiver_agent_id: str = Field(..., min_length=1)
    tx_signature: str = Field(..., min_length=1, max_length=128)
    amount: float
    description: str | None = Field(default=None, max_length=500)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_agent(request: RegisterRequest, wiki_app: WikiAppDep) -> dict[str, Any]:
    """Register a new agent. The API key is only ever returned here."""
    agent = await wiki_app.agents.register(request.wallet_address)
    return {
        "success": True,
        "agent": {
            **AgentProfile.from_agent(agent).model_dump(mode="json"),
            "api_key": agent.api_key,
        },
        "message": "Agent registered. Store your API key securely.",
    }


@router.get("/me")
async def get_me(agent: CurrentAgentDep) -> dict[str, Any]:
    return {"success": True, "agent": AgentProfile.from_agent(agent).model_dump(mode="json")}


@router.post("/wallet-link")
async def link_wallet(
    request: WalletLinkRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    updated = await wiki_app.agents.link_wallet(agent, request.wallet_address)
    return {
        "success": True,
        "agent": AgentProfile.from_agent(updated).model_dump(mode="json"),
        "message": "Wallet linked",
    }


# =============================================================================
# Deposits
# =============================================================================

@router.post("/deposit", status_code=status.HTTP_201_CREATED)
async def record_deposit(
    request: DepositRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    """Record a confirmed SOL transfer from the agent's wallet to the treasury."""
    deposit = await wiki_app.deposits.record_deposit(agent, request.tx_signature, request.amount)
    return {
        "success": True,
        "deposit": deposit.model_dump(mode="json"),
        "message": f"Deposit of {deposit.amount} SOL verified and recorded",
    }


@router.get("/deposits")
async def list_deposits(agent: CurrentAgentDep, wiki_app: WikiAppDep) -> dict[str, Any]:
    deposits = await wiki_app.deposits.list_deposits(agent.id)
    return {"success": True, "deposits": [d.model_dump(mode="json") for d in deposits]}


# =============================================================================
# Payments
# =============================================================================

@router.post("/payments", status_code=status.HTTP_201_CREATED)
async def send_payment(
    request: PaymentRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    """Record a confirmed SOL transfer to another agent."""
    payment = await wiki_app.payments.record_payment(
        agent,
        receiver_agent_id=request.receiver_agent_id,
        tx_signature=request.tx_signature,
        amount=request.amount,
        description=request.description,
    )
    return {"success": True, "payment": payment.model_dump(mode="json")}


@router.get("/payments")
async def list_payments(agent: CurrentAgentDep, wiki_app: WikiAppDep) -> dict[str, Any]:
    payments = await wiki_app.payments.list_payments(agent.id)
    return {"success": True, "payments": [p.model_dump(mode="json") for p in payments]}


@router.get("/payments/{payment_id}")
async def get_payment(
    payment_id: str,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    payment = await wiki_app.payments.get_payment(agent.id, payment_id)
    return {"success": True, "payment": payment.model_dump(mode="json")}


@router.get("/leaderboard")
async def leaderboard(wiki_app: WikiAppDep) -> dict[str, Any]:
    entries = wiki_app.reputation.leaderboard()
    return {"success": True, "leaderboard": [e.model_dump(mode="json") for e in entries]}
