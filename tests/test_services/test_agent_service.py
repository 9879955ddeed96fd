"""
Tests for AgentService and the ReputationLedger read side.
"""

import pytest

from agentwiki.exceptions import AuthError, NotFoundError, ValidationError, WalletAlreadyLinkedError
from agentwiki.models.base import ContributionAction
from agentwiki.services.agents import AgentService, generate_api_key
from tests.fakes import drain


@pytest.fixture
def service(db, bus) -> AgentService:
    return AgentService(db, bus)


class TestRegistration:
    """Tests for agent registration."""

    def test_api_key_format(self) -> None:
        key = generate_api_key()

        assert key.startswith("aw_")
        assert len(key) == 35
        assert key != generate_api_key()

    @pytest.mark.asyncio
    async def test_register_without_wallet(self, service, events) -> None:
        agent = await service.register()

        assert agent.wallet_address is None
        assert agent.deposit_amount == 0.0
        assert agent.reputation_score == 0
        assert agent.is_active
        assert [e.type for e in drain(events)] == ["agent:registered"]

    @pytest.mark.asyncio
    async def test_register_with_taken_wallet(self, service) -> None:
        await service.register("Wallet1")

        with pytest.raises(WalletAlreadyLinkedError):
            await service.register("Wallet1")


class TestAuthentication:
    """Tests for API-key authentication."""

    @pytest.mark.asyncio
    async def test_valid_key(self, service) -> None:
        agent = await service.register()

        assert (await service.authenticate(agent.api_key)).id == agent.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "api_key,message",
        [
            (None, "Missing authentication. Provide X-API-Key header."),
            ("", "Missing authentication. Provide X-API-Key header."),
            ("aw_unknown", "Invalid API key"),
        ],
    )
    async def test_rejected_keys(self, service, api_key, message) -> None:
        with pytest.raises(AuthError) as exc_info:
            await service.authenticate(api_key)

        assert exc_info.value.message == message
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_banned_agent_rejected(self, service, agent_repo) -> None:
        agent = await service.register()
        agent_repo.slash(agent.id)

        with pytest.raises(AuthError, match="Agent is not active"):
            await service.authenticate(agent.api_key)


class TestWalletLinking:
    """Tests for linking wallets."""

    @pytest.mark.asyncio
    async def test_link_and_relink_own_wallet(self, service) -> None:
        agent = await service.register()

        linked = await service.link_wallet(agent, " Wallet1 ")
        relinked = await service.link_wallet(linked, "Wallet1")

        assert linked.wallet_address == "Wallet1"
        assert relinked.wallet_address == "Wallet1"

    @pytest.mark.asyncio
    async def test_wallet_of_other_agent(self, service) -> None:
        await service.register("Wallet1")
        other = await service.register()

        with pytest.raises(WalletAlreadyLinkedError):
            await service.link_wallet(other, "Wallet1")

    @pytest.mark.asyncio
    async def test_blank_wallet(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.link_wallet(await service.register(), "   ")

    @pytest.mark.asyncio
    async def test_profile_hides_api_key(self, service) -> None:
        agent = await service.register()

        profile = await service.get_profile(agent.id)

        assert "api_key" not in profile.model_dump()
        with pytest.raises(NotFoundError):
            await service.get_profile("missing")


class TestReputationLedger:
    """Tests for contribution history and the leaderboard."""

    def test_leaderboard_orders_by_reputation(self, reputation, make_agent, agent_repo) -> None:
        low, high = make_agent(), make_agent()
        reputation.record(low.id, ContributionAction.DISCUSS)
        reputation.record(high.id, ContributionAction.CREATE)
        reputation.record(high.id, ContributionAction.VOTE)

        board = reputation.leaderboard()

        assert [entry.id for entry in board[:2]] == [high.id, low.id]
        assert board[0].reputation_score == 12
        assert board[0].contribution_count == 2

    def test_leaderboard_excludes_banned(self, reputation, make_agent, agent_repo) -> None:
        agent = make_agent()
        reputation.record(agent.id, ContributionAction.CREATE)
        agent_repo.slash(agent.id)

        assert agent.id not in [entry.id for entry in reputation.leaderboard()]

    def test_history_is_append_only(self, reputation, make_agent) -> None:
        agent = make_agent()
        reputation.record(agent.id, ContributionAction.EDIT, article_id="a1")
        reputation.record(agent.id, ContributionAction.EDIT, article_id="a1")

        history = reputation.history(agent.id)

        assert len(history) == 2
        assert {c.action_type for c in history} == {"edit"}
