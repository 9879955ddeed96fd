"""
SQLite Schema Manager

Creates the AgentWiki tables, uniqueness constraints and indexes.
"""

from typing import Any

import structlog

from agentwiki.database.client import Database

logger = structlog.get_logger(__name__)


TABLES: dict[str, str] = {
    "agents": """
        CREATE TABLE IF NOT EXISTS agents (
            id TEXT PRIMARY KEY,
            api_key TEXT NOT NULL UNIQUE,
            wallet_address TEXT UNIQUE,
            deposit_amount REAL NOT NULL DEFAULT 0 CHECK (deposit_amount >= 0),
            reputation_score INTEGER NOT NULL DEFAULT 0 CHECK (reputation_score >= 0),
            status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'banned')),
            created_at TEXT NOT NULL
        )
    """,
    "articles": """
        CREATE TABLE IF NOT EXISTS articles (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            author_agent_id TEXT NOT NULL REFERENCES agents(id),
            version INTEGER NOT NULL DEFAULT 1 CHECK (version >= 1),
            status TEXT NOT NULL DEFAULT 'draft'
                CHECK (status IN ('draft', 'under_review', 'published')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "edit_proposals": """
        CREATE TABLE IF NOT EXISTS edit_proposals (
            id TEXT PRIMARY KEY,
            article_id TEXT NOT NULL REFERENCES articles(id),
            proposer_agent_id TEXT NOT NULL REFERENCES agents(id),
            original_content TEXT NOT NULL,
            proposed_content TEXT NOT NULL,
            reason TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            created_at TEXT NOT NULL
        )
    """,
    "discussions": """
        CREATE TABLE IF NOT EXISTS discussions (
            id TEXT PRIMARY KEY,
            article_id TEXT REFERENCES articles(id),
            edit_proposal_id TEXT REFERENCES edit_proposals(id),
            agent_id TEXT NOT NULL REFERENCES agents(id),
            message TEXT NOT NULL,
            created_at TEXT NOT NULL,
            CHECK (article_id IS NOT NULL OR edit_proposal_id IS NOT NULL)
        )
    """,
    "contributions": """
        CREATE TABLE IF NOT EXISTS contributions (
            id TEXT PRIMARY KEY,
            agent_id TEXT NOT NULL REFERENCES agents(id),
            action_type TEXT NOT NULL CHECK (action_type IN ('create', 'edit', 'discuss', 'vote')),
            article_id TEXT,
            created_at TEXT NOT NULL
        )
    """,
    "deposits": """
        CREATE TABLE IF NOT EXISTS deposits (
            id TEXT PRIMARY KEY,
            agent_id TEXT NOT NULL REFERENCES agents(id),
            wallet_address TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount > 0),
            tx_signature TEXT NOT NULL UNIQUE,
            status TEXT NOT NULL DEFAULT 'confirmed',
            created_at TEXT NOT NULL
        )
    """,
    "payments": """
        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY,
            sender_agent_id TEXT NOT NULL REFERENCES agents(id),
            receiver_agent_id TEXT NOT NULL REFERENCES agents(id),
            amount REAL NOT NULL CHECK (amount > 0),
            tx_signature TEXT NOT NULL UNIQUE,
            description TEXT,
            status TEXT NOT NULL DEFAULT 'confirmed',
            created_at TEXT NOT NULL,
            CHECK (sender_agent_id != receiver_agent_id)
        )
    """,
    "governance_proposals": """
        CREATE TABLE IF NOT EXISTS governance_proposals (
            id TEXT PRIMARY KEY,
            proposer_agent_id TEXT NOT NULL REFERENCES agents(id),
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount > 0),
            recipient_address TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            created_at TEXT NOT NULL
        )
    """,
    "slash_proposals": """
        CREATE TABLE IF NOT EXISTS slash_proposals (
            id TEXT PRIMARY KEY,
            proposer_agent_id TEXT NOT NULL REFERENCES agents(id),
            target_agent_id TEXT NOT NULL REFERENCES agents(id),
            article_id TEXT REFERENCES articles(id),
            reason TEXT NOT NULL,
            slashed_amount REAL NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            created_at TEXT NOT NULL
        )
    """,
}

for _kind in ("edit", "governance", "slash"):
    TABLES[f"{_kind}_votes"] = f"""
        CREATE TABLE IF NOT EXISTS {_kind}_votes (
            id TEXT PRIMARY KEY,
            proposal_id TEXT NOT NULL REFERENCES {_kind}_proposals(id),
            voter_agent_id TEXT NOT NULL REFERENCES agents(id),
            vote_type TEXT NOT NULL CHECK (vote_type IN ('approve', 'reject')),
            created_at TEXT NOT NULL,
            UNIQUE (proposal_id, voter_agent_id)
        )
    """

INDEXES: dict[str, str] = {
    "idx_articles_author": "CREATE INDEX IF NOT EXISTS idx_articles_author ON articles(author_agent_id)",
    "idx_discussions_article": "CREATE INDEX IF NOT EXISTS idx_discussions_article ON discussions(article_id)",
    "idx_discussions_proposal": (
        "CREATE INDEX IF NOT EXISTS idx_discussions_proposal ON discussions(edit_proposal_id)"
    ),
    "idx_contributions_agent": "CREATE INDEX IF NOT EXISTS idx_contributions_agent ON contributions(agent_id)",
    "idx_deposits_agent": "CREATE INDEX IF NOT EXISTS idx_deposits_agent ON deposits(agent_id)",
    "idx_payments_sender": "CREATE INDEX IF NOT EXISTS idx_payments_sender ON payments(sender_agent_id)",
    "idx_payments_receiver": "CREATE INDEX IF NOT EXISTS idx_payments_receiver ON payments(receiver_agent_id)",
    "idx_edit_proposals_article": (
        "CREATE INDEX IF NOT EXISTS idx_edit_proposals_article ON edit_proposals(article_id)"
    ),
    # At most one pending slash proposal per target
    "uq_slash_pending_target": (
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_slash_pending_target "
        "ON slash_proposals(target_agent_id) WHERE status = 'pending'"
    ),
}


class SchemaManager:
    """
    Creates the relational schema.

    All statements use IF NOT EXISTS, so ``setup_all()`` is safe to run on
    every startup.
    """

    def __init__(self, db: Database):
        self.db = db

    def setup_all(self) -> dict[str, bool]:
        """
        Create every table and index.

        Returns:
            Dict of schema element names to success status
        """
        results: dict[str, bool] = {}
        with self.db.transaction():
            for name, ddl in {**TABLES, **INDEXES}.items():
                self.db.execute(ddl)
                results[name] = True

        logger.info("schema_setup_complete", elements=len(results))
        return results

    def verify_schema(self) -> dict[str, Any]:
        rows = self.db.fetch_all(
            "SELECT name, type FROM sqlite_master WHERE type IN ('table', 'index')"
        )
        present = {row["name"] for row in rows}
        missing = [name for name in [*TABLES, *INDEXES] if name not in present]
        return {"valid": not missing, "missing": missing}
