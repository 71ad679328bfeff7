"""Business logic for the question projection."""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.business_logic.common import clean_ids, default_collaborators, enter_quiz_context
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import AuthorizationProvider
from somapi_backend.repositories import CourseModuleRepository, QuestionVersionRepository, QuizRepository
from somapi_backend.services.formatting import TextFormatter
from somapi_backend.services.question_engine import QuizQuestionLoader
from somapi_types.questions import QuestionGet

logger = logging.getLogger(__name__)


def get_questions(
    quiz_ids: Optional[Iterable[int]],
    permissions: Principal,
    db: Session,
    authz: Optional[AuthorizationProvider] = None,
    formatter: Optional[TextFormatter] = None,
) -> List[QuestionGet]:
    """
    Questions used by the given quizzes, one record per question.

    A question used by several of the quizzes is returned once; its
    ``quiz_ids`` lists the quizzes in the order they were processed.
    ``revision_ids`` holds every question sharing its bank entry, whatever
    quizzes were requested.
    """
    quiz_ids = clean_ids(quiz_ids)
    if not quiz_ids:
        return []

    authz, formatter = default_collaborators(db, authz, formatter)
    course_modules = CourseModuleRepository(db)
    versions = QuestionVersionRepository(db)
    loader = QuizQuestionLoader(db)

    # Insertion ordered, so records come out in first-seen order
    records: Dict[int, QuestionGet] = {}

    for quiz in QuizRepository(db).find_by_ids(quiz_ids):
        entered = enter_quiz_context(authz, course_modules, permissions, quiz)
        if entered is None:
            continue
        _, context = entered

        for question in loader.load_questions(quiz.id):
            record = records.get(question.id)
            if record is not None:
                record.quiz_ids.append(quiz.id)
                continue

            records[question.id] = QuestionGet(
                id=question.id,
                name=formatter.format_string(question.name, context),
                text=formatter.format_text(question.questiontext, question.questiontextformat, context),
                type=question.qtype,
                default_marks=question.defaultmark,
                quiz_ids=[quiz.id],
                revision_ids=[v.question_id for v in versions.find_by_bank_entry(question.questionbankentry_id)],
                question_bank_entry_id=question.questionbankentry_id,
            )

    return list(records.values())
