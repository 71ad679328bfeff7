"""
Repositories for quizzes, quiz slots and quiz attempts.
"""

from typing import List
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.quiz import Quiz, QuizSlot, QuizAttempt, QuizAttemptState


class QuizRepository(BaseRepository[Quiz]):
    """Repository for Quiz entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Quiz)


class QuizSlotRepository(BaseRepository[QuizSlot]):
    """Repository for the question slots of a quiz."""

    def __init__(self, db: Session):
        super().__init__(db, QuizSlot)

    def find_by_quiz(self, quiz_id: int) -> List[QuizSlot]:
        """Slots of a quiz in slot order."""
        return self._all(
            self._query().filter(QuizSlot.quiz_id == quiz_id).order_by(QuizSlot.slot)
        )


class QuizAttemptRepository(BaseRepository[QuizAttempt]):
    """Repository for quiz attempts."""

    def __init__(self, db: Session):
        super().__init__(db, QuizAttempt)

    def find_finalized_by_quiz(self, quiz_id: int) -> List[QuizAttempt]:
        """
        Attempts of a quiz that are finished or abandoned.

        In-progress and overdue attempts are never returned.

        Args:
            quiz_id: Quiz identifier

        Returns:
            Attempts ordered by id
        """
        query = (
            self._query()
            .filter(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.state.in_(QuizAttemptState.FINALIZED),
            )
            .order_by(QuizAttempt.id)
        )
        return self._all(query)
