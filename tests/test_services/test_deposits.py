"""
Tests for DepositRecorder.

Tests cover:
- Crediting a verified deposit
- Duplicate signatures credit at most once
- Validation and verification failures leave no trace
"""

import asyncio

import pytest

from agentwiki.chain.verifier import ChainVerifier
from agentwiki.exceptions import (
    ConfigurationError,
    DuplicateTransactionError,
    NoWalletLinkedError,
    ValidationError,
    VerificationError,
    VerificationFailure,
)
from agentwiki.services.deposits import DepositRecorder
from tests.fakes import TREASURY, drain, sol

WALLET = "AgentWa11et1111111111111111111111111111111"


@pytest.fixture
def recorder(db, verifier, bus) -> DepositRecorder:
    return DepositRecorder(db, verifier, bus, TREASURY)


# =============================================================================
# Successful Deposits
# =============================================================================


class TestRecordDeposit:
    """Tests for the happy path."""

    @pytest.mark.asyncio
    async def test_verified_deposit_credits_balance(
        self, recorder, make_agent, agent_repo, ledger, events
    ) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))

        deposit = await recorder.record_deposit(agent, "sig1", 0.01)

        assert deposit.amount == 0.01
        assert deposit.wallet_address == WALLET
        assert deposit.status == "confirmed"
        assert agent_repo.get_deposit(agent.id) == pytest.approx(0.01)
        published = drain(events)
        assert [e.type for e in published] == ["deposit:recorded"]
        assert published[0].id == deposit.id

    @pytest.mark.asyncio
    async def test_deposits_accumulate(self, recorder, make_agent, agent_repo, ledger) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))
        ledger.add_transfer("sig2", WALLET, TREASURY, sol(0.02))

        await recorder.record_deposit(agent, "sig1", 0.01)
        await recorder.record_deposit(agent, "sig2", 0.02)

        assert agent_repo.get_deposit(agent.id) == pytest.approx(0.03)
        assert len(await recorder.list_deposits(agent.id)) == 2

    @pytest.mark.asyncio
    async def test_signature_whitespace_trimmed(self, recorder, make_agent, ledger) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))

        deposit = await recorder.record_deposit(agent, "  sig1 ", 0.01)

        assert deposit.tx_signature == "sig1"


# =============================================================================
# Duplicate Handling
# =============================================================================


class TestDuplicateDeposits:
    """Tests for at-most-once crediting."""

    @pytest.mark.asyncio
    async def test_second_submission_rejected(
        self, recorder, make_agent, agent_repo, ledger, db
    ) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))
        await recorder.record_deposit(agent, "sig1", 0.01)

        with pytest.raises(DuplicateTransactionError):
            await recorder.record_deposit(agent, "sig1", 0.01)

        assert db.fetch_value("SELECT COUNT(*) FROM deposits") == 1
        assert agent_repo.get_deposit(agent.id) == pytest.approx(0.01)

    @pytest.mark.asyncio
    async def test_duplicate_is_rejected_before_verification(
        self, recorder, make_agent, ledger
    ) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))
        await recorder.record_deposit(agent, "sig1", 0.01)
        lookups = len(ledger.lookups)

        with pytest.raises(DuplicateTransactionError):
            await recorder.record_deposit(agent, "sig1", 0.01)

        assert len(ledger.lookups) == lookups

    @pytest.mark.asyncio
    async def test_concurrent_submissions_credit_once(
        self, recorder, make_agent, agent_repo, ledger, db
    ) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.01))

        results = await asyncio.gather(
            recorder.record_deposit(agent, "sig1", 0.01),
            recorder.record_deposit(agent, "sig1", 0.01),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], DuplicateTransactionError)
        assert db.fetch_value("SELECT COUNT(*) FROM deposits") == 1
        assert agent_repo.get_deposit(agent.id) == pytest.approx(0.01)


# =============================================================================
# Rejections
# =============================================================================


class TestDepositRejections:
    """Tests for inputs that must not credit anything."""

    @pytest.mark.asyncio
    async def test_no_wallet(self, recorder, make_agent) -> None:
        with pytest.raises(NoWalletLinkedError):
            await recorder.record_deposit(make_agent(), "sig1", 0.01)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("signature,amount", [("", 0.01), ("sig1", 0), ("sig1", -1.0)])
    async def test_invalid_input(self, recorder, make_agent, signature, amount) -> None:
        with pytest.raises(ValidationError):
            await recorder.record_deposit(make_agent(wallet=WALLET), signature, amount)

    @pytest.mark.asyncio
    async def test_missing_treasury(self, db, verifier, bus, make_agent) -> None:
        recorder = DepositRecorder(db, verifier, bus, None)

        with pytest.raises(ConfigurationError) as exc_info:
            await recorder.record_deposit(make_agent(wallet=WALLET), "sig1", 0.01)

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, recorder, make_agent, agent_repo) -> None:
        agent = make_agent(wallet=WALLET)

        with pytest.raises(VerificationError) as exc_info:
            await recorder.record_deposit(agent, "unknown", 0.01)

        assert exc_info.value.reason == VerificationFailure.NOT_FOUND
        assert exc_info.value.status_code == 404
        assert exc_info.value.retryable
        assert agent_repo.get_deposit(agent.id) == 0.0

    @pytest.mark.asyncio
    async def test_amount_mismatch(self, recorder, make_agent, ledger, db, events) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", WALLET, TREASURY, sol(0.005))

        with pytest.raises(VerificationError) as exc_info:
            await recorder.record_deposit(agent, "sig1", 0.01)

        assert exc_info.value.reason == VerificationFailure.MISMATCH
        assert exc_info.value.status_code == 400
        assert db.fetch_value("SELECT COUNT(*) FROM deposits") == 0
        assert drain(events) == []

    @pytest.mark.asyncio
    async def test_transfer_from_other_wallet(self, recorder, make_agent, ledger) -> None:
        agent = make_agent(wallet=WALLET)
        ledger.add_transfer("sig1", "SomebodyElse", TREASURY, sol(0.01))

        with pytest.raises(VerificationError):
            await recorder.record_deposit(agent, "sig1", 0.01)

    @pytest.mark.asyncio
    async def test_rpc_outage_is_retryable(self, db, bus, failing_ledger, make_agent) -> None:
        recorder = DepositRecorder(db, ChainVerifier(failing_ledger), bus, TREASURY)

        with pytest.raises(VerificationError) as exc_info:
            await recorder.record_deposit(make_agent(wallet=WALLET), "sig1", 0.01)

        assert exc_info.value.reason == VerificationFailure.RPC_UNAVAILABLE
        assert exc_info.value.status_code == 503
