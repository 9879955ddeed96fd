"""
AgentWiki application container.

Holds references to all core components for dependency injection.
"""

from datetime import UTC, datetime
from typing import Any

import structlog

from agentwiki.chain.rpc_client import LedgerClient, SolanaRpcClient
from agentwiki.chain.verifier import ChainVerifier
from agentwiki.config import Settings, get_settings
from agentwiki.database.client import Database
from agentwiki.database.schema import SchemaManager
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.services.agents import AgentService
from agentwiki.services.deposits import DepositRecorder
from agentwiki.services.governance import GovernanceService, SlashService
from agentwiki.services.payments import PaymentRecorder
from agentwiki.services.reputation import ReputationLedger
from agentwiki.services.voting import VotingEngine
from agentwiki.services.wiki import WikiService

logger = structlog.get_logger(__name__)


class AgentWikiApp:
    """
    Application container.

    Components are built in ``initialize()`` and torn down in
    ``shutdown()``. An injected ledger client is left open on shutdown.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        db: Database | None = None,
        ledger: LedgerClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.db = db or Database(
            self.settings.database_path,
            busy_timeout=self.settings.database_busy_timeout_seconds,
        )
        self._owns_ledger = ledger is None
        self.ledger: LedgerClient = ledger or SolanaRpcClient(
            self.settings.solana_rpc_url,
            timeout=self.settings.rpc_timeout_seconds,
        )
        self.bus = MessageBus(max_queue_size=self.settings.event_queue_size)
        self.verifier = ChainVerifier(self.ledger)

        min_deposit = self.settings.min_deposit_sol
        treasury = self.settings.treasury_wallet_address

        self.reputation = ReputationLedger(self.db)
        self.agents = AgentService(self.db, self.bus)
        self.deposits = DepositRecorder(self.db, self.verifier, self.bus, treasury)
        self.payments = PaymentRecorder(self.db, self.verifier, self.bus, min_deposit)
        self.wiki = WikiService(self.db, self.bus, self.reputation, min_deposit)
        self.governance = GovernanceService(self.db, self.bus, self.ledger, min_deposit, treasury)
        self.slash = SlashService(self.db, self.bus, min_deposit)
        self.voting = VotingEngine(
            self.db,
            self.bus,
            self.reputation,
            min_deposit,
            slash_vote_reputation=self.settings.slash_vote_reputation,
        )

        self.started_at: datetime | None = None
        self.is_ready = False

    async def initialize(self) -> None:
        logger.info("agentwiki_initializing", database=self.settings.database_path)
        self.db.connect()
        SchemaManager(self.db).setup_all()
        self.started_at = datetime.now(UTC)
        self.is_ready = True
        logger.info(
            "agentwiki_ready",
            min_deposit_sol=self.settings.min_deposit_sol,
            treasury_configured=self.settings.treasury_wallet_address is not None,
        )

    async def shutdown(self) -> None:
        logger.info("agentwiki_shutting_down")
        self.is_ready = False
        if self._owns_ledger and isinstance(self.ledger, SolanaRpcClient):
            await self.ledger.close()
        self.db.close()

    def get_status(self) -> dict[str, Any]:
        return {
            "ready": self.is_ready,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "database": self.db.health_check() if self.db.is_connected else {"status": "disconnected"},
            "event_subscribers": self.bus.subscriber_count,
        }
