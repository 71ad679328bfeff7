"""
Repositories for questions, their versions and question usages.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.question import (
    Question,
    QuestionVersion,
    QuestionVersionStatus,
    QuestionUsage,
    QuestionAttempt,
    QuestionAttemptStep,
)


class QuestionRepository(BaseRepository[Question]):
    """Repository for Question entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Question)


class QuestionVersionRepository(BaseRepository[QuestionVersion]):
    """Repository linking question bank entries to question revisions."""

    def __init__(self, db: Session):
        super().__init__(db, QuestionVersion)

    def find_by_bank_entry(self, bank_entry_id: Optional[int]) -> List[QuestionVersion]:
        """
        All version records of a question bank entry, ordered by version record id.

        Args:
            bank_entry_id: Question bank entry identifier

        Returns:
            List of versions, empty for a missing id
        """
        if not bank_entry_id:
            return []
        return self.find_by_foreign_key("questionbankentry_id", int(bank_entry_id))

    def find_version(self, bank_entry_id: int, version: int) -> Optional[QuestionVersion]:
        """One specific version of a bank entry."""
        query = self._query().filter(
            QuestionVersion.questionbankentry_id == bank_entry_id,
            QuestionVersion.version == version,
        )
        return self._first(query)

    def find_latest_ready(self, bank_entry_id: int) -> Optional[QuestionVersion]:
        """The highest version of a bank entry that is ready to use."""
        query = (
            self._query()
            .filter(
                QuestionVersion.questionbankentry_id == bank_entry_id,
                QuestionVersion.status == QuestionVersionStatus.READY,
            )
            .order_by(QuestionVersion.version.desc())
        )
        return self._first(query)


class QuestionUsageRepository(BaseRepository[QuestionUsage]):
    """Repository for question usages and the question attempts inside them."""

    def __init__(self, db: Session):
        super().__init__(db, QuestionUsage)

    def find_question_attempts(self, usage_id: int) -> List[QuestionAttempt]:
        """Question attempts of a usage in slot order."""
        query = (
            self.db.query(QuestionAttempt)
            .filter(QuestionAttempt.questionusage_id == usage_id)
            .order_by(QuestionAttempt.slot)
        )
        return self._all(query)

    def find_steps(self, question_attempt_ids: List[int]) -> List[QuestionAttemptStep]:
        """Steps of the given question attempts, ordered by attempt then sequence number."""
        if not question_attempt_ids:
            return []
        query = (
            self.db.query(QuestionAttemptStep)
            .filter(QuestionAttemptStep.questionattempt_id.in_(question_attempt_ids))
            .order_by(QuestionAttemptStep.questionattempt_id, QuestionAttemptStep.sequencenumber)
        )
        return self._all(query)
