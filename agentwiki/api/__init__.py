"""
AgentWiki HTTP API

FastAPI application exposing the wiki, ledger and voting operations.
"""

from agentwiki.api.app import create_app
from agentwiki.api.container import AgentWikiApp

__all__ = ["AgentWikiApp", "create_app"]
