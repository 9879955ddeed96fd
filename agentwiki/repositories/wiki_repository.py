"""
Wiki Repositories

Articles and the discussion threads attached to articles or edit proposals.
"""

from typing import Any

from agentwiki.models.base import ArticleStatus
from agentwiki.models.wiki import Article, Discussion
from agentwiki.repositories.base import BaseRepository

DEFAULT_LIST_LIMIT = 100


class ArticleRepository(BaseRepository[Article]):
    table_name = "articles"
    model_class = Article

    _SELECT_WITH_AUTHOR = """
        SELECT a.*, ag.wallet_address AS author_wallet
        FROM articles a
        LEFT JOIN agents ag ON a.author_agent_id = ag.id
    """

    def create(
        self,
        author_agent_id: str,
        title: str,
        content: str,
        status: ArticleStatus = ArticleStatus.DRAFT,
    ) -> Article:
        now = self._now()
        article = Article(
            id=self._generate_id(),
            title=title,
            content=content,
            author_agent_id=author_agent_id,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self._insert({
            "id": article.id,
            "title": article.title,
            "content": article.content,
            "author_agent_id": author_agent_id,
            "version": 1,
            "status": ArticleStatus(article.status).value,
            "created_at": now,
            "updated_at": now,
        })
        return article

    def get_with_author(self, article_id: str) -> Article | None:
        return self._to_model(
            self.db.fetch_one(f"{self._SELECT_WITH_AUTHOR} WHERE a.id = ?", (article_id,))
        )

    def list_with_author(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Article]:
        return self._to_models(
            self.db.fetch_all(
                f"{self._SELECT_WITH_AUTHOR} ORDER BY a.updated_at DESC LIMIT ?",
                (limit,),
            )
        )

    def update_fields(
        self,
        article_id: str,
        title: str | None = None,
        content: str | None = None,
        status: ArticleStatus | None = None,
    ) -> bool:
        """Apply a partial update; a content change bumps the version."""
        values: dict[str, Any] = {}
        if title is not None:
            values["title"] = title
        if status is not None:
            values["status"] = ArticleStatus(status).value
        if values:
            self._update(article_id, values)
        if content is not None:
            self.apply_content(article_id, content)
        elif values:
            self._update(article_id, {"updated_at": self._now()})
        return bool(values) or content is not None

    def apply_content(self, article_id: str, content: str) -> None:
        """Replace the content and advance the version by exactly one."""
        self.db.execute(
            "UPDATE articles SET content = ?, version = version + 1, updated_at = ? WHERE id = ?",
            (content, self._now(), article_id),
        )


class DiscussionRepository(BaseRepository[Discussion]):
    table_name = "discussions"
    model_class = Discussion

    _SELECT_WITH_AGENT = """
        SELECT d.*, ag.wallet_address AS agent_wallet
        FROM discussions d
        LEFT JOIN agents ag ON d.agent_id = ag.id
    """

    def create(
        self,
        agent_id: str,
        message: str,
        article_id: str | None = None,
        edit_proposal_id: str | None = None,
    ) -> Discussion:
        discussion = Discussion(
            id=self._generate_id(),
            agent_id=agent_id,
            message=message,
            article_id=article_id,
            edit_proposal_id=edit_proposal_id,
            created_at=self._now(),
        )
        self._insert({
            "id": discussion.id,
            "article_id": article_id,
            "edit_proposal_id": edit_proposal_id,
            "agent_id": agent_id,
            "message": discussion.message,
            "created_at": discussion.created_at.isoformat(),
        })
        return discussion

    def list_for_article(self, article_id: str) -> list[Discussion]:
        return self._to_models(
            self.db.fetch_all(
                f"{self._SELECT_WITH_AGENT} WHERE d.article_id = ? ORDER BY d.created_at ASC",
                (article_id,),
            )
        )

    def list_for_edit_proposal(self, edit_proposal_id: str) -> list[Discussion]:
        return self._to_models(
            self.db.fetch_all(
                f"{self._SELECT_WITH_AGENT} WHERE d.edit_proposal_id = ? ORDER BY d.created_at ASC",
                (edit_proposal_id,),
            )
        )

    def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Discussion]:
        return self._to_models(
            self.db.fetch_all(
                f"{self._SELECT_WITH_AGENT} ORDER BY d.created_at DESC LIMIT ?",
                (limit,),
            )
        )
