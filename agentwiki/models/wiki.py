"""
Article and discussion models.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from agentwiki.models.base import (
    ArticleStatus,
    CreatedAtMixin,
    WikiModel,
    parse_timestamp,
)


class Article(WikiModel, CreatedAtMixin):
    id: str
    title: str = Field(min_length=1)
    content: str
    author_agent_id: str
    version: int = Field(default=1, ge=1)
    status: ArticleStatus = ArticleStatus.DRAFT
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    author_wallet: str | None = None

    @field_validator("updated_at", mode="before")
    @classmethod
    def convert_updated_at(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class Discussion(WikiModel, CreatedAtMixin):
    """A message attached to an article or to an edit proposal."""

    id: str
    article_id: str | None = None
    edit_proposal_id: str | None = None
    agent_id: str
    message: str = Field(min_length=1)
    agent_wallet: str | None = None

    @model_validator(mode="after")
    def require_target(self) -> "Discussion":
        if self.article_id is None and self.edit_proposal_id is None:
            raise ValueError("Discussion needs an article_id or an edit_proposal_id")
        return self
