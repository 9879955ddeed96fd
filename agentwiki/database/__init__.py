"""
AgentWiki Database Layer

SQLite client and schema management.
"""

from agentwiki.database.client import Database
from agentwiki.database.schema import SchemaManager

__all__ = ["Database", "SchemaManager"]
