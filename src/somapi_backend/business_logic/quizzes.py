"""Business logic for the quiz projection."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.business_logic.common import QUIZ_MODULE, clean_ids, default_collaborators, skip_row
from somapi_backend.exceptions import InvalidContextException
from somapi_backend.model.quiz import Quiz
from somapi_backend.permissions import capabilities
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import AuthorizationProvider, ContextRef
from somapi_backend.repositories import CourseModuleRepository, CourseRepository
from somapi_backend.services.formatting import TextFormatter
from somapi_backend.services.question_engine import QuizQuestionLoader
from somapi_types.quizzes import QuizGet, QuizQuestionGet

logger = logging.getLogger(__name__)


def get_quizzes(
    course_ids: Optional[Iterable[int]],
    permissions: Principal,
    db: Session,
    authz: Optional[AuthorizationProvider] = None,
    formatter: Optional[TextFormatter] = None,
) -> List[QuizGet]:
    """
    Quizzes in the given courses for which the caller can view reports.

    Courses go through the visibility-aware ``validate_courses`` first, so the
    quizzes need no further course-level validation. Each quiz lists its
    questions in slot order with the quiz-specific max mark.
    """
    course_ids = clean_ids(course_ids)
    if not course_ids:
        return []

    authz, formatter = default_collaborators(db, authz, formatter)
    course_modules = CourseModuleRepository(db)
    loader = QuizQuestionLoader(db)

    courses, warnings = authz.validate_courses(permissions, CourseRepository(db).find_by_ids(course_ids))
    for warning in warnings:
        logger.warning(f"Course {warning['itemid']} skipped for user {permissions.user_id}: {warning['message']}")

    instances = course_modules.find_instances_in_courses(
        QUIZ_MODULE, [course.id for course in courses], Quiz
    )

    result = []
    for quiz, cm in instances:
        try:
            context = authz.resolve_context(ContextRef.module(cm.id))
        except InvalidContextException as e:
            skip_row(permissions, e)
            continue

        if not cm.visible and not authz.has_capability(
            permissions, capabilities.COURSE_VIEW_HIDDEN_ACTIVITIES, context
        ):
            continue

        if not authz.has_capability(permissions, capabilities.QUIZ_VIEW_REPORTS, context):
            continue

        result.append(QuizGet(
            id=quiz.id,
            name=formatter.format_string(quiz.name, context),
            course_id=quiz.course_id,
            course_module_id=cm.id,
            questions=[
                QuizQuestionGet(id=question.id, max_marks=question.maxmark)
                for question in loader.load_questions(quiz.id)
            ],
        ))

    return result
