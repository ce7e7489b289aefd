"""
Base Repository implementation.
Provides common data access patterns by primary key.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.orm import Session


ModelT = TypeVar("ModelT")


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Repositories never commit. Transaction boundaries belong to the services,
    and SQLAlchemyError propagates to them unchanged.

    Subclasses must implement:
    - model: Return the SQLAlchemy model class
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    def find_by_id(self, entity_id: int) -> ModelT | None:
        """Find entity by ID (identity map first, then database)."""
        return self._db.get(self.model, entity_id)

    def update_fields(self, entity_id: int, values: Mapping[str, Any]) -> ModelT | None:
        """
        Apply a partial update in one UPDATE statement.

        Returns:
            The refreshed entity, or None when no row matched.
        """
        if not values:
            return self.find_by_id(entity_id)

        result = self._db.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .values(**values)
        )
        if result.rowcount == 0:
            return None
        return self.find_by_id(entity_id)

    def delete(self, entity_id: int) -> bool:
        """
        Hard delete by ID. Dependent rows go through ON DELETE CASCADE.

        Returns:
            True if a row was deleted.
        """
        result = self._db.execute(
            delete(self.model)
            .where(self.model.id == entity_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0
