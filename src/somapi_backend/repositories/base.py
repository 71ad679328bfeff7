"""
Base repository pattern implementation.

Repositories keep the projection functions free of query details: every
lookup the functions need is a batch lookup by primary key or by one
foreign key column. Nothing here writes.
"""

from abc import ABC
from typing import TypeVar, Generic, List, Optional, Any, Iterable, Type
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import SQLAlchemyError

# Type variable for generic entity type
T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository operations."""
    pass


class NotFoundError(RepositoryError):
    """Exception raised when entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class BaseRepository(ABC, Generic[T]):
    """
    Abstract read-only repository over one SQLAlchemy model.

    Store failures surface as RepositoryError; callers treat them as fatal.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model class.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def _query(self) -> Query:
        return self.db.query(self.model)

    def _all(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to query {self.model.__name__}: {str(e)}") from e

    def _first(self, query: Query) -> Optional[T]:
        try:
            return query.first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to query {self.model.__name__}: {str(e)}") from e

    def get_by_id(self, entity_id: Any) -> T:
        """
        Get entity by ID.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise NotFoundError(self.model.__name__, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: Any) -> Optional[T]:
        """Get entity by ID, returning None if not found."""
        return self._first(self._query().filter(self.model.id == entity_id))

    def find_by_ids(self, ids: Iterable[Any]) -> List[T]:
        """
        Batch lookup by primary key, ordered by id.

        Duplicate ids collapse naturally. An empty id list returns [] without
        touching the database.

        Args:
            ids: Entity identifiers

        Returns:
            List of found entities
        """
        ids = list(ids)
        if not ids:
            return []
        return self._all(
            self._query().filter(self.model.id.in_(ids)).order_by(self.model.id)
        )

    def find_by_foreign_key(self, key: str, value: Any) -> List[T]:
        """
        Find all entities whose ``key`` column equals ``value``, ordered by id.

        Args:
            key: Column name on the model
            value: Value to match

        Returns:
            List of matching entities
        """
        column = self._column(key)
        return self._all(self._query().filter(column == value).order_by(self.model.id))

    def find_by_foreign_keys(self, key: str, values: Iterable[Any]) -> List[T]:
        """Like find_by_foreign_key, matching any of ``values``."""
        values = list(values)
        if not values:
            return []
        column = self._column(key)
        return self._all(self._query().filter(column.in_(values)).order_by(self.model.id))

    def _column(self, key: str):
        if not hasattr(self.model, key):
            raise RepositoryError(f"{self.model.__name__} has no column {key!r}")
        return getattr(self.model, key)
