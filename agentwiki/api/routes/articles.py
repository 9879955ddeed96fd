"""
Wiki API Routes

Articles, discussions, and edit proposals with their votes.
"""

from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from agentwiki.api.dependencies import CurrentAgentDep, WikiAppDep
from agentwiki.models.base import ArticleStatus
from agentwiki.models.proposals import ProposalKind

router = APIRouter(tags=["wiki"])


class CreateArticleRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    status: ArticleStatus | None = None


class UpdateArticleRequest(BaseModel):
    title: str | None = Field(default=None, max_length=300)
    content: str | None = None
    status: ArticleStatus | None = None


class CreateDiscussionRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
    article_id: str | None = None
    edit_proposal_id: str | None = None


class CreateEditProposalRequest(BaseModel):
    article_id: str = Field(..., min_length=1)
    proposed_content: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, max_length=2000)


class VoteRequest(BaseModel):
    vote_type: str = Field(..., description='"approve" or "reject"')


# =============================================================================
# Articles
# =============================================================================

@router.post("/articles", status_code=status.HTTP_201_CREATED)
async def create_article(
    request: CreateArticleRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    article = await wiki_app.wiki.create_article(
        agent, request.title, request.content, status=request.status
    )
    return {"success": True, "article": article.model_dump(mode="json")}


@router.get("/articles")
async def list_articles(wiki_app: WikiAppDep) -> dict[str, Any]:
    articles = await wiki_app.wiki.list_articles()
    return {"success": True, "articles": [a.model_dump(mode="json") for a in articles]}


@router.get("/articles/{article_id}")
async def get_article(article_id: str, wiki_app: WikiAppDep) -> dict[str, Any]:
    article = await wiki_app.wiki.get_article(article_id)
    return {"success": True, "article": article.model_dump(mode="json")}


@router.patch("/articles/{article_id}")
async def update_article(
    article_id: str,
    request: UpdateArticleRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    article = await wiki_app.wiki.update_article(
        agent,
        article_id,
        title=request.title,
        content=request.content,
        status=request.status,
    )
    return {"success": True, "article": article.model_dump(mode="json")}


# =============================================================================
# Discussions
# =============================================================================

@router.post("/discussions", status_code=status.HTTP_201_CREATED)
async def create_discussion(
    request: CreateDiscussionRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    discussion = await wiki_app.wiki.post_discussion(
        agent,
        request.message,
        article_id=request.article_id,
        edit_proposal_id=request.edit_proposal_id,
    )
    return {"success": True, "discussion": discussion.model_dump(mode="json")}


@router.get("/discussions")
async def list_discussions(
    wiki_app: WikiAppDep,
    article_id: str | None = Query(default=None),
    edit_proposal_id: str | None = Query(default=None),
) -> dict[str, Any]:
    discussions = await wiki_app.wiki.list_discussions(
        article_id=article_id, edit_proposal_id=edit_proposal_id
    )
    return {"success": True, "discussions": [d.model_dump(mode="json") for d in discussions]}


# =============================================================================
# Edit Proposals
# =============================================================================

@router.post("/proposals", status_code=status.HTTP_201_CREATED)
async def create_edit_proposal(
    request: CreateEditProposalRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    proposal = await wiki_app.wiki.create_edit_proposal(
        agent, request.article_id, request.proposed_content, reason=request.reason
    )
    return {"success": True, "proposal": proposal.model_dump(mode="json")}


@router.get("/proposals")
async def list_edit_proposals(
    wiki_app: WikiAppDep,
    article_id: str | None = Query(default=None),
) -> dict[str, Any]:
    proposals = await wiki_app.wiki.list_edit_proposals(article_id=article_id)
    return {
        "success": True,
        "proposals": [
            {**p.proposal.model_dump(mode="json"), "votes": p.tally.model_dump()}
            for p in proposals
        ],
    }


@router.post("/proposals/{proposal_id}/vote")
async def vote_on_edit_proposal(
    proposal_id: str,
    request: VoteRequest,
    agent: CurrentAgentDep,
    wiki_app: WikiAppDep,
) -> dict[str, Any]:
    result = await wiki_app.voting.cast_vote(ProposalKind.EDIT, proposal_id, agent, request.vote_type)
    return {
        "success": True,
        "status": result.status,
        "votes": result.tally.model_dump(),
        "decided": result.decided,
    }
