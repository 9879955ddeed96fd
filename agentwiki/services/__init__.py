"""
AgentWiki Services

Business operations. Every service takes its collaborators (database,
message bus, chain verifier) through the constructor.
"""

from agentwiki.services.agents import AgentService, generate_api_key
from agentwiki.services.deposits import DepositRecorder
from agentwiki.services.gating import DepositDecision, ensure_deposit, require_deposit
from agentwiki.services.governance import GovernanceService, SlashService
from agentwiki.services.payments import PaymentRecorder
from agentwiki.services.reputation import CONTRIBUTION_POINTS, ReputationLedger
from agentwiki.services.voting import VOTE_THRESHOLD, VotingEngine, decide_outcome
from agentwiki.services.wiki import WikiService

__all__ = [
    "AgentService",
    "CONTRIBUTION_POINTS",
    "DepositDecision",
    "DepositRecorder",
    "GovernanceService",
    "PaymentRecorder",
    "ReputationLedger",
    "SlashService",
    "VOTE_THRESHOLD",
    "VotingEngine",
    "WikiService",
    "decide_outcome",
    "ensure_deposit",
    "generate_api_key",
    "require_deposit",
]
