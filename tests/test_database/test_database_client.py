"""
Tests for the SQLite client and schema.

Tests cover:
- Transaction commit and rollback
- Nested transactions joining the outer one
- Schema creation and uniqueness constraints
"""

import sqlite3

import pytest

from agentwiki.database.client import Database, _is_lock_contention
from agentwiki.database.schema import INDEXES, TABLES, SchemaManager


def insert_agent(db: Database, agent_id: str, api_key: str, wallet: str | None = None) -> None:
    db.execute(
        "INSERT INTO agents (id, api_key, wallet_address, created_at) VALUES (?, ?, ?, ?)",
        (agent_id, api_key, wallet, "2026-01-01T00:00:00+00:00"),
    )


# =============================================================================
# Connection Tests
# =============================================================================


class TestConnection:
    """Tests for connection lifecycle."""

    def test_connect_is_idempotent(self) -> None:
        db = Database(":memory:")
        db.connect()
        db.connect()

        assert db.is_connected
        assert db.health_check()["status"] == "healthy"
        db.close()
        assert not db.is_connected

    def test_query_before_connect_raises(self) -> None:
        db = Database(":memory:")

        with pytest.raises(RuntimeError):
            db.fetch_one("SELECT 1")

    def test_health_check_reports_disconnected_client(self) -> None:
        db = Database(":memory:")

        assert db.health_check()["status"] == "unhealthy"

    def test_file_database_created_in_missing_directory(self, tmp_path) -> None:
        path = tmp_path / "nested" / "wiki.db"
        db = Database(str(path))
        db.connect()
        SchemaManager(db).setup_all()
        db.close()

        assert path.exists()

    def test_lock_contention_detection(self) -> None:
        assert _is_lock_contention(sqlite3.OperationalError("database is locked"))
        assert not _is_lock_contention(sqlite3.OperationalError("no such table: x"))
        assert not _is_lock_contention(ValueError("locked"))


# =============================================================================
# Transaction Tests
# =============================================================================


class TestTransactions:
    """Tests for Database.transaction()."""

    def test_commit_on_success(self, db: Database) -> None:
        with db.transaction():
            insert_agent(db, "a1", "key-1")

        assert db.fetch_value("SELECT COUNT(*) FROM agents") == 1
        assert not db.in_transaction

    def test_rollback_on_error(self, db: Database) -> None:
        with pytest.raises(ValueError):
            with db.transaction():
                insert_agent(db, "a1", "key-1")
                raise ValueError("abort")

        assert db.fetch_value("SELECT COUNT(*) FROM agents") == 0
        assert not db.in_transaction

    def test_nested_transaction_joins_outer(self, db: Database) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction():
                insert_agent(db, "a1", "key-1")
                with db.transaction():
                    assert db.in_transaction
                    insert_agent(db, "a2", "key-2")
                # Same API key: violates UNIQUE and aborts the whole unit
                insert_agent(db, "a3", "key-1")

        assert db.fetch_value("SELECT COUNT(*) FROM agents") == 0

    def test_fetch_helpers(self, db: Database) -> None:
        insert_agent(db, "a1", "key-1", wallet="W1")

        row = db.fetch_one("SELECT * FROM agents WHERE id = ?", ("a1",))
        assert row is not None
        assert row["wallet_address"] == "W1"
        assert row["status"] == "active"
        assert db.fetch_one("SELECT * FROM agents WHERE id = ?", ("missing",)) is None
        assert len(db.fetch_all("SELECT * FROM agents")) == 1
        assert db.execute("UPDATE agents SET reputation_score = 5") == 1


# =============================================================================
# Schema Tests
# =============================================================================


class TestSchema:
    """Tests for SchemaManager and constraints."""

    def test_verify_schema(self, db: Database) -> None:
        result = SchemaManager(db).verify_schema()

        assert result["valid"]
        assert result["missing"] == []

    def test_setup_is_repeatable(self, db: Database) -> None:
        results = SchemaManager(db).setup_all()

        assert set(results) == set(TABLES) | set(INDEXES)

    def test_wallet_unique_across_agents(self, db: Database) -> None:
        insert_agent(db, "a1", "key-1", wallet="W1")

        with pytest.raises(sqlite3.IntegrityError):
            insert_agent(db, "a2", "key-2", wallet="W1")

    def test_deposit_signature_unique(self, db: Database) -> None:
        insert_agent(db, "a1", "key-1", wallet="W1")
        sql = (
            "INSERT INTO deposits (id, agent_id, wallet_address, amount, tx_signature, status, created_at) "
            "VALUES (?, 'a1', 'W1', 0.01, 'sig', 'confirmed', '2026-01-01T00:00:00+00:00')"
        )
        db.execute(sql, ("d1",))

        with pytest.raises(sqlite3.IntegrityError):
            db.execute(sql, ("d2",))

    def test_one_pending_slash_per_target(self, db: Database) -> None:
        insert_agent(db, "a1", "key-1")
        insert_agent(db, "a2", "key-2")
        sql = (
            "INSERT INTO slash_proposals (id, proposer_agent_id, target_agent_id, reason, status, created_at) "
            "VALUES (?, 'a1', 'a2', 'spam', ?, '2026-01-01T00:00:00+00:00')"
        )
        db.execute(sql, ("s1", "rejected"))
        db.execute(sql, ("s2", "pending"))

        with pytest.raises(sqlite3.IntegrityError):
            db.execute(sql, ("s3", "pending"))

    def test_one_vote_per_agent_per_proposal(self, db: Database) -> None:
        insert_agent(db, "a1", "key-1")
        insert_agent(db, "a2", "key-2")
        db.execute(
            "INSERT INTO governance_proposals (id, proposer_agent_id, title, description, amount, created_at) "
            "VALUES ('g1', 'a1', 'Fund', 'Docs', 0.5, '2026-01-01T00:00:00+00:00')"
        )
        sql = (
            "INSERT INTO governance_votes (id, proposal_id, voter_agent_id, vote_type, created_at) "
            "VALUES (?, 'g1', 'a2', ?, '2026-01-01T00:00:00+00:00')"
        )
        db.execute(sql, ("v1", "approve"))

        with pytest.raises(sqlite3.IntegrityError):
            db.execute(sql, ("v2", "reject"))
