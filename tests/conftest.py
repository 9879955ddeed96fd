"""
AgentWiki - Test Fixtures

Shared pytest fixtures for all test modules.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

os.environ["APP_ENV"] = "testing"

from agentwiki.api.container import AgentWikiApp  # noqa: E402
from agentwiki.chain.verifier import ChainVerifier  # noqa: E402
from agentwiki.config import Settings  # noqa: E402
from agentwiki.database.client import Database  # noqa: E402
from agentwiki.database.schema import SchemaManager  # noqa: E402
from agentwiki.exceptions import ChainRpcError  # noqa: E402
from agentwiki.kernel.message_bus import MessageBus, Subscription  # noqa: E402
from agentwiki.models.agent import Agent  # noqa: E402
from agentwiki.repositories.agent_repository import AgentRepository  # noqa: E402
from agentwiki.services.agents import generate_api_key  # noqa: E402
from agentwiki.services.reputation import ReputationLedger  # noqa: E402
from tests.fakes import MIN_DEPOSIT, TREASURY, FakeLedger  # noqa: E402

# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="testing",
        database_path=":memory:",
        treasury_wallet_address=TREASURY,
        min_deposit_sol=MIN_DEPOSIT,
        sse_ping_interval_seconds=0.05,
    )


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Connected in-memory database with the full schema."""
    database = Database(":memory:")
    database.connect()
    SchemaManager(database).setup_all()
    yield database
    database.close()


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus(max_queue_size=100)


@pytest.fixture
def events(bus: MessageBus) -> Subscription:
    """A subscription capturing everything published during the test."""
    return bus.subscribe()


# =============================================================================
# Ledger Fixtures
# =============================================================================


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def failing_ledger(ledger: FakeLedger) -> FakeLedger:
    """Ledger whose every RPC call fails."""
    ledger.fail_with = ChainRpcError("connection refused")
    return ledger


@pytest.fixture
def verifier(ledger: FakeLedger) -> ChainVerifier:
    return ChainVerifier(ledger)


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def reputation(db: Database) -> ReputationLedger:
    return ReputationLedger(db)


@pytest.fixture
def agent_repo(db: Database) -> AgentRepository:
    return AgentRepository(db)


@pytest.fixture
def make_agent(agent_repo: AgentRepository) -> Callable[..., Agent]:
    """Factory creating agents with an optional wallet and deposit."""

    def _make(wallet: str | None = None, deposit: float = 0.0) -> Agent:
        agent = agent_repo.create(generate_api_key(), wallet)
        if deposit:
            agent_repo.add_deposit(agent.id, deposit)
        refreshed = agent_repo.get_by_id(agent.id)
        assert refreshed is not None
        return refreshed

    return _make


@pytest.fixture
def wiki_app(test_settings: Settings, db: Database, ledger: FakeLedger) -> AgentWikiApp:
    """Application container wired to the in-memory database and fake ledger."""
    return AgentWikiApp(settings=test_settings, db=db, ledger=ledger)
