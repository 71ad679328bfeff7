"""
User repository for direct database access.
"""

from typing import Iterable, List
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.auth import User


class UserRepository(BaseRepository[User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def find_active_by_ids(self, user_ids: Iterable[int]) -> List[User]:
        """
        Batch lookup of users that are not deleted.

        Args:
            user_ids: User identifiers

        Returns:
            Users ordered by id
        """
        user_ids = list(user_ids)
        if not user_ids:
            return []
        query = (
            self._query()
            .filter(User.id.in_(user_ids), User.deleted.is_(False))
            .order_by(User.id)
        )
        return self._all(query)
