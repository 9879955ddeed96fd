"""
AgentWiki API Routes
"""

from agentwiki.api.routes import agents, articles, events, governance

__all__ = ["agents", "articles", "events", "governance"]
