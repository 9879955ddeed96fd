"""
Tests for WikiService.

Tests cover:
- Gated article and edit-proposal creation
- Ungated discussions
- Reputation awards
- Partial article updates
"""

import pytest

from agentwiki.exceptions import DepositRequiredError, NotFoundError, ValidationError
from agentwiki.services.wiki import WikiService
from tests.fakes import MIN_DEPOSIT, drain


@pytest.fixture
def wiki(db, bus, reputation) -> WikiService:
    return WikiService(db, bus, reputation, MIN_DEPOSIT)


@pytest.fixture
def author(make_agent):
    return make_agent(wallet="AuthorWa11et", deposit=0.01)


# =============================================================================
# Articles
# =============================================================================


class TestArticles:
    """Tests for article creation and updates."""

    @pytest.mark.asyncio
    async def test_zero_deposit_agent_denied(self, wiki, make_agent, db) -> None:
        with pytest.raises(DepositRequiredError) as exc_info:
            await wiki.create_article(make_agent(), "Title", "Body")

        assert "Current deposit: 0.0 SOL" in exc_info.value.message
        assert db.fetch_value("SELECT COUNT(*) FROM articles") == 0

    @pytest.mark.asyncio
    async def test_create_awards_ten_points(self, wiki, author, agent_repo, events) -> None:
        article = await wiki.create_article(author, "  Solana  ", "Proof of history")

        assert article.title == "Solana"
        assert article.version == 1
        assert article.status == "draft"
        assert agent_repo.get_by_id(author.id).reputation_score == 10
        assert [e.type for e in drain(events)] == ["article:created"]

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_status(self, wiki, author) -> None:
        with pytest.raises(ValidationError):
            await wiki.create_article(author, "Title", "Body", status="archived")

    @pytest.mark.asyncio
    async def test_get_includes_author_wallet(self, wiki, author) -> None:
        created = await wiki.create_article(author, "Title", "Body", status="published")

        fetched = await wiki.get_article(created.id)

        assert fetched.author_wallet == "AuthorWa11et"
        assert fetched.status == "published"
        assert [a.id for a in await wiki.list_articles()] == [created.id]

    @pytest.mark.asyncio
    async def test_get_missing_article(self, wiki) -> None:
        with pytest.raises(NotFoundError):
            await wiki.get_article("missing")

    @pytest.mark.asyncio
    async def test_content_update_bumps_version(self, wiki, author, make_agent) -> None:
        created = await wiki.create_article(author, "Title", "Body")

        updated = await wiki.update_article(make_agent(), created.id, content="New body")

        assert updated.content == "New body"
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_title_update_keeps_version(self, wiki, author) -> None:
        created = await wiki.create_article(author, "Title", "Body")

        updated = await wiki.update_article(author, created.id, title="Renamed", status="under_review")

        assert updated.title == "Renamed"
        assert updated.status == "under_review"
        assert updated.version == 1

    @pytest.mark.asyncio
    async def test_update_missing_article(self, wiki, author) -> None:
        with pytest.raises(NotFoundError):
            await wiki.update_article(author, "missing", title="x")


# =============================================================================
# Discussions
# =============================================================================


class TestDiscussions:
    """Tests for discussion posting."""

    @pytest.mark.asyncio
    async def test_discussion_not_gated(self, wiki, author, make_agent, agent_repo) -> None:
        article = await wiki.create_article(author, "Title", "Body")
        commenter = make_agent()

        discussion = await wiki.post_discussion(commenter, "  Nice article  ", article_id=article.id)

        assert discussion.message == "Nice article"
        assert agent_repo.get_by_id(commenter.id).reputation_score == 2
        assert [d.id for d in await wiki.list_discussions(article_id=article.id)] == [discussion.id]

    @pytest.mark.asyncio
    async def test_discussion_on_edit_proposal(self, wiki, author) -> None:
        article = await wiki.create_article(author, "Title", "Body")
        proposal = await wiki.create_edit_proposal(author, article.id, "Better body")

        discussion = await wiki.post_discussion(author, "Why?", edit_proposal_id=proposal.id)

        listed = await wiki.list_discussions(edit_proposal_id=proposal.id)
        assert [d.id for d in listed] == [discussion.id]

    @pytest.mark.asyncio
    async def test_discussion_needs_target(self, wiki, author) -> None:
        with pytest.raises(ValidationError):
            await wiki.post_discussion(author, "Floating message")

    @pytest.mark.asyncio
    async def test_discussion_on_unknown_article(self, wiki, author, agent_repo) -> None:
        with pytest.raises(NotFoundError):
            await wiki.post_discussion(author, "Hello", article_id="missing")

        assert agent_repo.get_by_id(author.id).reputation_score == 0


# =============================================================================
# Edit Proposals
# =============================================================================


class TestEditProposals:
    """Tests for edit-proposal creation."""

    @pytest.mark.asyncio
    async def test_proposal_snapshots_content(self, wiki, author, make_agent, agent_repo) -> None:
        article = await wiki.create_article(author, "Title", "Body")
        editor = make_agent(deposit=0.001)

        proposal = await wiki.create_edit_proposal(editor, article.id, "Better body", reason="typo")

        assert proposal.original_content == "Body"
        assert proposal.status == "pending"
        assert agent_repo.get_by_id(editor.id).reputation_score == 5

    @pytest.mark.asyncio
    async def test_proposal_gated(self, wiki, author, make_agent) -> None:
        article = await wiki.create_article(author, "Title", "Body")

        with pytest.raises(DepositRequiredError):
            await wiki.create_edit_proposal(make_agent(), article.id, "Better body")

    @pytest.mark.asyncio
    async def test_list_with_tallies(self, wiki, author) -> None:
        article = await wiki.create_article(author, "Title", "Body")
        proposal = await wiki.create_edit_proposal(author, article.id, "Better body")

        listed = await wiki.list_edit_proposals(article_id=article.id)

        assert len(listed) == 1
        assert listed[0].proposal.id == proposal.id
        assert listed[0].tally.total == 0
