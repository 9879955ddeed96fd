"""
Agent Service

Registration, API-key authentication and wallet linking.
"""

import secrets
import sqlite3

import structlog

from agentwiki.database.client import Database
from agentwiki.exceptions import (
    AuthError,
    NotFoundError,
    ValidationError,
    WalletAlreadyLinkedError,
)
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent, AgentProfile
from agentwiki.models.events import WikiEventType
from agentwiki.repositories.agent_repository import AgentRepository

logger = structlog.get_logger(__name__)

API_KEY_PREFIX = "aw_"


def generate_api_key() -> str:
    """``aw_`` followed by 32 URL-safe random characters."""
    return API_KEY_PREFIX + secrets.token_urlsafe(24)


class AgentService:
    def __init__(self, db: Database, bus: MessageBus):
        self._db = db
        self._bus = bus
        self._agents = AgentRepository(db)

    async def register(self, wallet_address: str | None = None) -> Agent:
        """
        Create an agent with a fresh API key.

        Raises:
            WalletAlreadyLinkedError: If the wallet belongs to another agent
        """
        wallet_address = (wallet_address or "").strip() or None
        try:
            with self._db.transaction():
                if wallet_address and self._agents.get_by_wallet(wallet_address):
                    raise WalletAlreadyLinkedError()
                agent = self._agents.create(generate_api_key(), wallet_address)
        except sqlite3.IntegrityError as e:
            raise WalletAlreadyLinkedError() from e

        logger.info("agent_registered", agent_id=agent.id)
        self._bus.publish(WikiEventType.AGENT_REGISTERED, id=agent.id, summary="New agent registered")
        return agent

    async def authenticate(self, api_key: str | None) -> Agent:
        """
        Resolve an API key to an active agent.

        Raises:
            AuthError: If the key is missing, unknown, or its agent is banned
        """
        if not api_key:
            raise AuthError("Missing authentication. Provide X-API-Key header.")

        agent = self._agents.get_by_api_key(api_key)
        if agent is None:
            logger.info("authentication_failed", reason="unknown_key")
            raise AuthError("Invalid API key")
        if not agent.is_active:
            logger.info("authentication_failed", reason="inactive", agent_id=agent.id)
            raise AuthError("Agent is not active")
        return agent

    async def link_wallet(self, agent: Agent, wallet_address: str) -> Agent:
        """
        Link (or re-link) a wallet to the agent.

        Raises:
            ValidationError: If the wallet address is blank
            WalletAlreadyLinkedError: If another agent holds the wallet
        """
        wallet_address = (wallet_address or "").strip()
        if not wallet_address:
            raise ValidationError("wallet_address is required")

        try:
            with self._db.transaction():
                if self._agents.wallet_claimed_by_other(wallet_address, agent.id):
                    raise WalletAlreadyLinkedError()
                self._agents.set_wallet(agent.id, wallet_address)
                updated = self._agents.get_by_id(agent.id)
        except sqlite3.IntegrityError as e:
            raise WalletAlreadyLinkedError() from e

        logger.info("wallet_linked", agent_id=agent.id)
        assert updated is not None
        return updated

    async def get_profile(self, agent_id: str) -> AgentProfile:
        agent = self._agents.get_by_id(agent_id)
        if agent is None:
            raise NotFoundError("Agent not found")
        return AgentProfile.from_agent(agent)
