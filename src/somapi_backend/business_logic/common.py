"""Helpers shared by the projection functions."""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from somapi_backend.exceptions import InvalidContextException, InvalidParametersException
from somapi_backend.model.access import Context
from somapi_backend.model.course import CourseModule
from somapi_backend.model.quiz import Quiz
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import (
    AuthorizationProvider,
    ContextRef,
    DatabaseAuthorizationProvider,
)
from somapi_backend.repositories import CourseModuleRepository
from somapi_backend.services.formatting import HtmlTextFormatter, TextFormatter
from somapi_backend.settings import settings

logger = logging.getLogger(__name__)

QUIZ_MODULE = "quiz"


def clean_ids(ids: Optional[Iterable]) -> List[int]:
    """
    Coerce requested ids to integers.

    ``None`` counts as an empty list; duplicates are kept.

    Raises:
        InvalidParametersException: ids is not a list or holds a non-integer
    """
    if ids is None:
        return []
    if not isinstance(ids, (list, tuple, set)):
        raise InvalidParametersException(detail="Expected a list of integer ids")

    cleaned = []
    for value in ids:
        if isinstance(value, bool):
            raise InvalidParametersException(detail=f"Invalid id {value!r}")
        try:
            cleaned.append(int(value))
        except (TypeError, ValueError):
            raise InvalidParametersException(detail=f"Invalid id {value!r}")
    return cleaned


def default_collaborators(
    db: Session,
    authz: Optional[AuthorizationProvider],
    formatter: Optional[TextFormatter],
) -> Tuple[AuthorizationProvider, TextFormatter]:
    return (
        authz if authz is not None else DatabaseAuthorizationProvider(db),
        formatter if formatter is not None else HtmlTextFormatter(),
    )


def skip_row(principal: Principal, error: InvalidContextException) -> None:
    """Apply INVALID_CONTEXT_POLICY to a row whose context did not validate."""
    if settings.INVALID_CONTEXT_POLICY == "raise":
        raise error
    logger.debug(f"Skipping row for user {principal.user_id}: {error.detail}")


def enter_context(
    authz: AuthorizationProvider,
    principal: Principal,
    ref: ContextRef,
) -> Optional[Context]:
    """
    Resolve and validate the context of one row.

    Returns None when the row has to be skipped. With
    ``INVALID_CONTEXT_POLICY=raise`` the InvalidContextException aborts the
    whole call instead.
    """
    try:
        context = authz.resolve_context(ref)
        authz.validate_context(principal, context)
    except InvalidContextException as e:
        skip_row(principal, e)
        return None
    return context


def enter_quiz_context(
    authz: AuthorizationProvider,
    course_modules: CourseModuleRepository,
    principal: Principal,
    quiz: Quiz,
) -> Optional[Tuple[CourseModule, Context]]:
    """
    Find the course module of a quiz and enter its module context.

    A quiz without a course module is treated like an invalid context.
    """
    cm = course_modules.find_instance(QUIZ_MODULE, quiz.id)
    if cm is None:
        skip_row(principal, InvalidContextException(detail=f"Quiz {quiz.id} has no course module"))
        return None

    context = enter_context(authz, principal, ContextRef.module(cm.id))
    if context is None:
        return None
    return cm, context
