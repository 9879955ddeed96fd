"""
Base Models and Common Types

Foundation classes for all AgentWiki models including enums and the
base model configuration.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_timestamp(value: Any) -> datetime:
    """Convert a stored ISO-8601 string to an aware datetime."""
    if value is None:
        return datetime.now(UTC)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return value


class WikiModel(BaseModel):
    """Base model for all AgentWiki entities with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )


class CreatedAtMixin(BaseModel):
    """Mixin providing a created_at field."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at", mode="before")
    @classmethod
    def convert_created_at(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class AgentStatus(str, Enum):
    ACTIVE = "active"
    BANNED = "banned"  # Terminal, set only by slash execution


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    PUBLISHED = "published"


class ProposalStatus(str, Enum):
    """Lifecycle of every proposal kind: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteType(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @classmethod
    def from_string(cls, value: str) -> "VoteType":
        """
        Convert request input to a VoteType.

        Raises:
            ValueError: If the value is not "approve" or "reject"
        """
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            raise ValueError('vote_type must be "approve" or "reject"') from None


class ContributionAction(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DISCUSS = "discuss"
    VOTE = "vote"


class TransactionStatus(str, Enum):
    """Only verified transactions are ever persisted."""

    CONFIRMED = "confirmed"


def generate_id() -> str:
    """Generate a new entity ID."""
    return str(uuid4())
