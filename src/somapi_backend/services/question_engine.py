"""
Question engine: loading the questions of a quiz and the question usage of
an attempt.

QuizQuestionLoader resolves every quiz slot to the question version that is
currently active for it. QuestionUsageLoader exposes the per-slot question
attempts of a quiz attempt the way the projection needs them.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.model.question import QuestionAttempt, QuestionAttemptStep
from somapi_backend.repositories import (
    NotFoundError,
    QuestionRepository,
    QuestionUsageRepository,
    QuestionVersionRepository,
    QuizSlotRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedQuestion:
    """A question as placed in one quiz slot."""

    id: int
    name: str
    questiontext: str
    questiontextformat: int
    defaultmark: float
    qtype: str
    questionbankentry_id: int
    slot: int
    # Quiz-specific override of the question's default mark
    maxmark: float


class QuizQuestionLoader:
    """Loads the questions of a quiz in slot order."""

    def __init__(self, db: Session):
        self.slots = QuizSlotRepository(db)
        self.versions = QuestionVersionRepository(db)
        self.questions = QuestionRepository(db)

    def load_questions(self, quiz_id: int) -> List[LoadedQuestion]:
        """
        Resolve each slot of the quiz to its active question.

        A slot pinned to a version uses exactly that version; an unpinned slot
        uses the highest ready version of its bank entry. Slots that resolve
        to nothing are skipped.
        """
        loaded = []
        for slot in self.slots.find_by_quiz(quiz_id):
            if slot.version is not None:
                version = self.versions.find_version(slot.questionbankentry_id, slot.version)
            else:
                version = self.versions.find_latest_ready(slot.questionbankentry_id)

            if version is None:
                logger.warning(
                    f"Quiz {quiz_id} slot {slot.slot}: no usable version of question bank entry "
                    f"{slot.questionbankentry_id}"
                )
                continue

            question = self.questions.get_by_id_optional(version.question_id)
            if question is None:
                logger.warning(f"Quiz {quiz_id} slot {slot.slot}: question {version.question_id} missing")
                continue

            loaded.append(LoadedQuestion(
                id=question.id,
                name=question.name,
                questiontext=question.questiontext,
                questiontextformat=question.questiontextformat,
                defaultmark=question.defaultmark,
                qtype=question.qtype,
                questionbankentry_id=version.questionbankentry_id,
                slot=slot.slot,
                maxmark=slot.maxmark,
            ))
        return loaded


@dataclass
class LoadedQuestionAttempt:
    """One slot of a question usage."""

    record: QuestionAttempt
    steps: List[QuestionAttemptStep] = field(default_factory=list)

    def get_question_id(self) -> int:
        return self.record.question_id

    def get_fraction(self) -> Optional[float]:
        """Fraction of the latest step; None until the slot has been graded."""
        if not self.steps:
            return None
        return self.steps[-1].fraction

    def get_mark(self) -> Optional[float]:
        fraction = self.get_fraction()
        if fraction is None:
            return None
        return fraction * self.record.maxmark

    def get_response_summary(self) -> Optional[str]:
        return self.record.responsesummary


@dataclass
class QuestionUsageByActivity:
    """All question attempts belonging to one quiz attempt."""

    id: int
    attempts: Dict[int, LoadedQuestionAttempt] = field(default_factory=dict)

    def get_slots(self) -> List[int]:
        return sorted(self.attempts)

    def get_question_attempt(self, slot: int) -> LoadedQuestionAttempt:
        return self.attempts[slot]


class QuestionUsageLoader:
    """Loads question usages with their attempts and steps."""

    def __init__(self, db: Session):
        self.usages = QuestionUsageRepository(db)

    def load_usage(self, usage_id: int) -> QuestionUsageByActivity:
        """
        Load a question usage.

        Raises:
            NotFoundError: If the usage does not exist
        """
        usage = self.usages.get_by_id_optional(usage_id)
        if usage is None:
            raise NotFoundError("QuestionUsage", usage_id)

        question_attempts = self.usages.find_question_attempts(usage.id)
        steps = self.usages.find_steps([qa.id for qa in question_attempts])

        steps_by_attempt: Dict[int, List[QuestionAttemptStep]] = {}
        for step in steps:
            steps_by_attempt.setdefault(step.questionattempt_id, []).append(step)

        return QuestionUsageByActivity(
            id=usage.id,
            attempts={
                qa.slot: LoadedQuestionAttempt(record=qa, steps=steps_by_attempt.get(qa.id, []))
                for qa in question_attempts
            },
        )
