"""
Wiki Service

Articles, discussions and edit proposals.
"""

import structlog

from agentwiki.database.client import Database
from agentwiki.exceptions import NotFoundError, ValidationError
from agentwiki.kernel.message_bus import MessageBus
from agentwiki.models.agent import Agent
from agentwiki.models.base import ArticleStatus, ContributionAction
from agentwiki.models.events import WikiEventType
from agentwiki.models.proposals import EditProposal, ProposalWithTally
from agentwiki.models.wiki import Article, Discussion
from agentwiki.repositories.proposal_repository import EditProposalRepository
from agentwiki.repositories.wiki_repository import ArticleRepository, DiscussionRepository
from agentwiki.services.gating import ensure_deposit
from agentwiki.services.reputation import ReputationLedger

logger = structlog.get_logger(__name__)


def _parse_article_status(status: ArticleStatus | str | None) -> ArticleStatus | None:
    if status is None:
        return None
    try:
        return ArticleStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in ArticleStatus)
        raise ValidationError(f"status must be one of: {allowed}") from None


class WikiService:
    def __init__(
        self,
        db: Database,
        bus: MessageBus,
        reputation: ReputationLedger,
        min_deposit: float,
    ):
        self._db = db
        self._bus = bus
        self._reputation = reputation
        self._min_deposit = min_deposit
        self._articles = ArticleRepository(db)
        self._discussions = DiscussionRepository(db)
        self._edit_proposals = EditProposalRepository(db)

    # ═══════════════════════════════════════════════════════════════
    # ARTICLES
    # ═══════════════════════════════════════════════════════════════

    async def create_article(
        self,
        author: Agent,
        title: str,
        content: str,
        status: ArticleStatus | str | None = None,
    ) -> Article:
        """Gated. Awards the author create reputation."""
        ensure_deposit(author.deposit_amount, self._min_deposit)

        title = (title or "").strip()
        if not title or not content:
            raise ValidationError("title and content are required")
        article_status = _parse_article_status(status) or ArticleStatus.DRAFT

        with self._db.transaction():
            article = self._articles.create(author.id, title, content, article_status)
            self._reputation.record(author.id, ContributionAction.CREATE, article_id=article.id)

        logger.info("article_created", article_id=article.id, author_agent_id=author.id)
        self._bus.publish(WikiEventType.ARTICLE_CREATED, id=article.id, summary=title)
        return article

    async def update_article(
        self,
        agent: Agent,
        article_id: str,
        title: str | None = None,
        content: str | None = None,
        status: ArticleStatus | str | None = None,
    ) -> Article:
        """Partial update. A content change bumps the version."""
        article_status = _parse_article_status(status)
        if title is not None and not title.strip():
            raise ValidationError("title cannot be empty")

        with self._db.transaction():
            if not self._articles.exists(article_id):
                raise NotFoundError("Article not found")
            self._articles.update_fields(
                article_id,
                title=title.strip() if title is not None else None,
                content=content,
                status=article_status,
            )
            article = self._articles.get_with_author(article_id)

        assert article is not None
        logger.info("article_updated", article_id=article_id, agent_id=agent.id, version=article.version)
        self._bus.publish(WikiEventType.ARTICLE_UPDATED, id=article_id, summary=article.title)
        return article

    async def get_article(self, article_id: str) -> Article:
        article = self._articles.get_with_author(article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def list_articles(self) -> list[Article]:
        return self._articles.list_with_author()

    # ═══════════════════════════════════════════════════════════════
    # DISCUSSIONS
    # ═══════════════════════════════════════════════════════════════

    async def post_discussion(
        self,
        agent: Agent,
        message: str,
        article_id: str | None = None,
        edit_proposal_id: str | None = None,
    ) -> Discussion:
        """Not gated. Awards discuss reputation."""
        if not message or not message.strip():
            raise ValidationError("message is required")
        if not article_id and not edit_proposal_id:
            raise ValidationError("article_id or edit_proposal_id is required")

        with self._db.transaction():
            if article_id and not self._articles.exists(article_id):
                raise NotFoundError("Article not found")
            proposal = None
            if edit_proposal_id:
                proposal = self._edit_proposals.get_by_id(edit_proposal_id)
                if proposal is None:
                    raise NotFoundError("Edit proposal not found")
            discussion = self._discussions.create(
                agent.id,
                message.strip(),
                article_id=article_id,
                edit_proposal_id=edit_proposal_id,
            )
            self._reputation.record(
                agent.id,
                ContributionAction.DISCUSS,
                article_id=article_id or (proposal.article_id if proposal else None),
            )

        self._bus.publish(
            WikiEventType.DISCUSSION_CREATED,
            id=discussion.id,
            summary=discussion.message[:50],
        )
        return discussion

    async def list_discussions(
        self,
        article_id: str | None = None,
        edit_proposal_id: str | None = None,
    ) -> list[Discussion]:
        """Oldest first for a thread; newest first otherwise."""
        if article_id:
            return self._discussions.list_for_article(article_id)
        if edit_proposal_id:
            return self._discussions.list_for_edit_proposal(edit_proposal_id)
        return self._discussions.list_recent()

    # ═══════════════════════════════════════════════════════════════
    # EDIT PROPOSALS
    # ═══════════════════════════════════════════════════════════════

    async def create_edit_proposal(
        self,
        agent: Agent,
        article_id: str,
        proposed_content: str,
        reason: str | None = None,
    ) -> EditProposal:
        """Gated. Snapshots the current article content and awards edit reputation."""
        ensure_deposit(agent.deposit_amount, self._min_deposit)

        if not article_id or not proposed_content:
            raise ValidationError("article_id and proposed_content are required")

        with self._db.transaction():
            article = self._articles.get_by_id(article_id)
            if article is None:
                raise NotFoundError("Article not found")
            proposal = self._edit_proposals.create(
                article_id=article_id,
                proposer_agent_id=agent.id,
                original_content=article.content,
                proposed_content=proposed_content,
                reason=reason,
            )
            self._reputation.record(agent.id, ContributionAction.EDIT, article_id=article_id)

        self._bus.publish(
            WikiEventType.PROPOSAL_CREATED,
            id=proposal.id,
            summary=f"Edit proposed for {article.title}",
        )
        return proposal

    async def list_edit_proposals(self, article_id: str | None = None) -> list[ProposalWithTally]:
        if article_id:
            return [
                ProposalWithTally(proposal=p, tally=self._edit_proposals.tally(p.id))
                for p in self._edit_proposals.list_for_article(article_id)
            ]
        return self._edit_proposals.list_with_tallies()
