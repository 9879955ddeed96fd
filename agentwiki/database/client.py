"""
SQLite Client

Thin wrapper around the stdlib sqlite3 driver providing single-writer
transactions, row helpers and retry on lock contention.
"""

import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)

Params = Sequence[Any] | dict[str, Any]


def _is_lock_contention(exc: BaseException) -> bool:
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "locked" in message or "busy" in message


class Database:
    """
    SQLite client for AgentWiki.

    One connection is shared by the process. Every statement runs under a
    re-entrant lock, and ``transaction()`` opens ``BEGIN IMMEDIATE`` so each
    unit of work is the only writer until it commits or rolls back.
    """

    def __init__(self, path: str = ":memory:", busy_timeout: float = 5.0):
        """
        Initialize the client.

        Args:
            path: Database file path, or ":memory:" for a private in-memory store
            busy_timeout: Seconds SQLite waits on a locked file before failing
        """
        self._path = path
        self._busy_timeout = busy_timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0

    def connect(self) -> None:
        """Open the connection (idempotent)."""
        if self._conn is not None:
            return

        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        logger.info("database_connecting", path=self._path)

        # Autocommit mode: transactions are opened explicitly with BEGIN IMMEDIATE
        conn = sqlite3.connect(
            self._path,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if self._path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
        self._conn = conn
        logger.info("database_connected", path=self._path)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("database_closed", path=self._path)

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception(_is_lock_contention),
        reraise=True,
    )
    def _begin(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN IMMEDIATE")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a unit of work as the single writer.

        Usage:
            with db.transaction():
                db.execute("UPDATE agents SET ...", (...))

        Commits on successful exit and rolls back on any exception. Nested
        calls join the outermost transaction.
        """
        with self._lock:
            conn = self._get_conn()
            if self._depth > 0:
                self._depth += 1
                try:
                    yield conn
                finally:
                    self._depth -= 1
                return

            self._begin(conn)
            self._depth = 1
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                self._depth = 0

    def execute(self, query: str, parameters: Params = ()) -> int:
        """
        Execute a write statement.

        Returns:
            Number of rows affected
        """
        with self._lock:
            cursor = self._get_conn().execute(query, parameters)
            return cursor.rowcount

    def fetch_one(self, query: str, parameters: Params = ()) -> dict[str, Any] | None:
        with self._lock:
            row = self._get_conn().execute(query, parameters).fetchone()
            return dict(row) if row is not None else None

    def fetch_all(self, query: str, parameters: Params = ()) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._get_conn().execute(query, parameters).fetchall()
            return [dict(row) for row in rows]

    def fetch_value(self, query: str, parameters: Params = ()) -> Any:
        """Return the first column of the first row, or None."""
        with self._lock:
            row = self._get_conn().execute(query, parameters).fetchone()
            return row[0] if row is not None else None

    def executescript(self, script: str) -> None:
        with self._lock:
            self._get_conn().executescript(script)

    def health_check(self) -> dict[str, Any]:
        try:
            self.fetch_value("SELECT 1")
            return {"status": "healthy", "database": self._path}
        except (sqlite3.Error, RuntimeError) as e:
            logger.error("database_health_check_failed", error=str(e))
            return {"status": "unhealthy", "database": self._path, "error": str(e)}
