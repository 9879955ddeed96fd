"""
Base Repository

Abstract base class for all repositories with common row operations
and SQL helpers.
"""

import re
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from agentwiki.database.client import Database
from agentwiki.models.base import generate_id

# Regex for valid SQL identifiers (table and column names)
VALID_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(name: str, param_name: str = "identifier") -> str:
    """
    Validate that a string is a safe SQL identifier.

    Column and table names cannot be bound as parameters, so every name
    interpolated into a statement goes through here.

    Raises:
        ValueError: If the identifier is invalid
    """
    if not name:
        raise ValueError(f"{param_name} cannot be empty")
    if not VALID_IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid {param_name}: must be alphanumeric with underscores")
    if len(name) > 64:
        raise ValueError(f"{param_name} too long (max 64 characters)")
    return name


T = TypeVar("T", bound=BaseModel)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository.

    Repositories are synchronous: they run inside the caller's
    ``Database.transaction()`` when one is open, or in autocommit mode
    otherwise.
    """

    def __init__(self, db: Database):
        self.db = db
        self.logger = structlog.get_logger(self.__class__.__name__)

    @property
    @abstractmethod
    def table_name(self) -> str:
        ...

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        ...

    def _generate_id(self) -> str:
        return generate_id()

    def _now(self) -> str:
        """Current UTC time as a sortable ISO-8601 string."""
        return datetime.now(UTC).isoformat()

    def _to_model(self, record: dict[str, Any] | None) -> T | None:
        """
        Convert a row to a Pydantic model.

        Raises:
            pydantic.ValidationError: If the stored row violates the model
        """
        if not record:
            return None
        try:
            return self.model_class.model_validate(record)
        except PydanticValidationError as e:
            self.logger.error(
                "row_to_model_failed",
                table=self.table_name,
                error=str(e),
                record_keys=list(record.keys()),
            )
            raise

    def _to_models(self, records: list[dict[str, Any]]) -> list[T]:
        return [m for m in (self._to_model(r) for r in records) if m is not None]

    def _insert(self, values: dict[str, Any]) -> None:
        columns = [validate_identifier(c, "column") for c in values]
        placeholders = ", ".join(f":{c}" for c in columns)
        self.db.execute(
            f"INSERT INTO {self.table_name} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )

    def _update(self, entity_id: str, values: dict[str, Any]) -> bool:
        if not values:
            return False
        assignments = ", ".join(
            f"{validate_identifier(c, 'column')} = :{c}" for c in values
        )
        updated = self.db.execute(
            f"UPDATE {self.table_name} SET {assignments} WHERE id = :_id",
            {**values, "_id": entity_id},
        )
        return updated > 0

    def get_by_id(self, entity_id: str) -> T | None:
        record = self.db.fetch_one(
            f"SELECT * FROM {self.table_name} WHERE id = ?", (entity_id,)
        )
        return self._to_model(record)

    def exists(self, entity_id: str) -> bool:
        return self.db.fetch_value(
            f"SELECT 1 FROM {self.table_name} WHERE id = ?", (entity_id,)
        ) is not None

    def count(self) -> int:
        return int(self.db.fetch_value(f"SELECT COUNT(*) FROM {self.table_name}") or 0)
