"""Business logic for the quiz attempt projection."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.business_logic.common import clean_ids, default_collaborators, enter_quiz_context
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import AuthorizationProvider
from somapi_backend.repositories import CourseModuleRepository, QuizAttemptRepository, QuizRepository
from somapi_backend.services.formatting import TextFormatter
from somapi_backend.services.question_engine import QuestionUsageLoader
from somapi_types.attempts import AttemptAnswerGet, AttemptGet

logger = logging.getLogger(__name__)


def get_attempts(
    quiz_ids: Optional[Iterable[int]],
    permissions: Principal,
    db: Session,
    authz: Optional[AuthorizationProvider] = None,
    formatter: Optional[TextFormatter] = None,
) -> List[AttemptGet]:
    """
    Finished and abandoned attempts of the given quizzes.

    Attempts are grouped per quiz in the order the quizzes are loaded, and
    list one answer per slot in slot order.
    """
    quiz_ids = clean_ids(quiz_ids)
    if not quiz_ids:
        return []

    authz, formatter = default_collaborators(db, authz, formatter)
    course_modules = CourseModuleRepository(db)
    attempts = QuizAttemptRepository(db)
    usages = QuestionUsageLoader(db)

    result = []
    for quiz in QuizRepository(db).find_by_ids(quiz_ids):
        entered = enter_quiz_context(authz, course_modules, permissions, quiz)
        if entered is None:
            continue
        _, context = entered

        for attempt in attempts.find_finalized_by_quiz(quiz.id):
            usage = usages.load_usage(attempt.uniqueid)
            answers = []
            for slot in usage.get_slots():
                question_attempt = usage.get_question_attempt(slot)
                answers.append(AttemptAnswerGet(
                    id=question_attempt.get_question_id(),
                    mark=question_attempt.get_mark(),
                    answer=formatter.format_string(question_attempt.get_response_summary(), context),
                ))

            result.append(AttemptGet(
                id=attempt.id,
                quiz_id=attempt.quiz_id,
                user_id=attempt.user_id,
                start_time=attempt.timestart,
                finish_time=attempt.timefinish,
                questions=answers,
            ))

    return result
