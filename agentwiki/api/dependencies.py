"""
AgentWiki - FastAPI Dependencies

Provides:
- Application container access
- Current agent extraction from the X-API-Key header
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from agentwiki.api.container import AgentWikiApp
from agentwiki.models.agent import Agent


def get_wiki_app(request: Request) -> AgentWikiApp:
    """Get the AgentWikiApp instance from request state."""
    wiki_app = getattr(request.app.state, "wiki", None)
    if wiki_app is None or not wiki_app.is_ready:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AgentWiki application not initialized",
        )
    return wiki_app


WikiAppDep = Annotated[AgentWikiApp, Depends(get_wiki_app)]


async def get_current_agent(
    wiki_app: WikiAppDep,
    x_api_key: Annotated[str | None, Header()] = None,
) -> Agent:
    """
    Authenticate the caller.

    Raises:
        AuthError: Missing, unknown, or inactive API key (rendered as 401)
    """
    return await wiki_app.agents.authenticate(x_api_key)


CurrentAgentDep = Annotated[Agent, Depends(get_current_agent)]
