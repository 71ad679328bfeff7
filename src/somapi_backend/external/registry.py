"""
Declarations of the web service functions and the service group they belong to.

Every function is read-only. The service ships disabled and restricted to
allow-listed users; site administrators enable it and add users.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type

from pydantic import BaseModel, TypeAdapter
from sqlalchemy.orm import Session

from somapi_backend.business_logic import get_attempts, get_courses, get_questions, get_quizzes, get_users
from somapi_backend.model.auth import ExternalService
from somapi_backend.permissions import capabilities
from somapi_backend.settings import settings
from somapi_types.attempts import AttemptGet, AttemptQuery
from somapi_types.base import IdListQuery
from somapi_types.courses import CourseGet, CourseQuery
from somapi_types.questions import QuestionGet, QuestionQuery
from somapi_types.quizzes import QuizGet, QuizQuery
from somapi_types.users import UserGet, UserQuery

logger = logging.getLogger(__name__)

COMPONENT = "tool_ucsfsomapi"


@dataclass(frozen=True)
class ExternalFunction:
    name: str
    # Called as handler(ids, principal, db)
    handler: Callable
    description: str
    params: Type[IdListQuery]
    returns: Type[BaseModel]
    capabilities: List[str] = field(default_factory=list)
    type: str = "read"
    services: List[str] = field(default_factory=list)
    # False for handlers that take no AuthorizationProvider
    row_checks: bool = True

    def returns_adapter(self) -> TypeAdapter:
        return TypeAdapter(List[self.returns])


@dataclass(frozen=True)
class ExternalServiceDefinition:
    shortname: str
    name: str
    functions: List[str]
    enabled: bool = False
    restrictedusers: bool = True
    component: str = COMPONENT


FUNCTIONS: Dict[str, ExternalFunction] = {
    f.name: f for f in [
        ExternalFunction(
            name="somapi_get_courses",
            handler=get_courses,
            description="Retrieves courses.",
            params=CourseQuery,
            returns=CourseGet,
            capabilities=[capabilities.COURSE_VIEW],
            services=[settings.SERVICE_SHORTNAME],
        ),
        ExternalFunction(
            name="somapi_get_quizzes",
            handler=get_quizzes,
            description="Retrieves quizzes.",
            params=QuizQuery,
            returns=QuizGet,
            capabilities=[capabilities.QUIZ_VIEW_REPORTS],
            services=[settings.SERVICE_SHORTNAME],
        ),
        ExternalFunction(
            name="somapi_get_questions",
            handler=get_questions,
            description="Retrieves questions.",
            params=QuestionQuery,
            returns=QuestionGet,
            capabilities=[capabilities.QUESTION_VIEW_ALL],
            services=[settings.SERVICE_SHORTNAME],
        ),
        ExternalFunction(
            name="somapi_get_attempts",
            handler=get_attempts,
            description="Retrieves quiz attempts.",
            params=AttemptQuery,
            returns=AttemptGet,
            capabilities=[capabilities.QUIZ_VIEW_REPORTS],
            services=[settings.SERVICE_SHORTNAME],
        ),
        ExternalFunction(
            name="somapi_get_users",
            handler=get_users,
            description="Retrieves users.",
            params=UserQuery,
            returns=UserGet,
            capabilities=[capabilities.USER_VIEW_DETAILS],
            services=[settings.SERVICE_SHORTNAME],
            row_checks=False,
        ),
    ]
}


SERVICES: Dict[str, ExternalServiceDefinition] = {
    settings.SERVICE_SHORTNAME: ExternalServiceDefinition(
        shortname=settings.SERVICE_SHORTNAME,
        name="School Of Medicine API",
        functions=list(FUNCTIONS),
    ),
}


def get_function(name: str) -> Optional[ExternalFunction]:
    return FUNCTIONS.get(name)


def functions_for_service(shortname: Optional[str]) -> List[ExternalFunction]:
    service = SERVICES.get(shortname) if shortname else None
    if service is None:
        return []
    return [FUNCTIONS[name] for name in service.functions]


def sync_service_definitions(db: Session) -> List[str]:
    """
    Insert the declared services that are missing from ``external_service``.

    Existing rows are left alone so an administrator's ``enabled`` and
    ``restrictedusers`` choices survive restarts.

    Returns:
        Shortnames of the services that were created
    """
    created = []
    for definition in SERVICES.values():
        exists = (
            db.query(ExternalService)
            .filter(ExternalService.shortname == definition.shortname)
            .first()
        )
        if exists is not None:
            continue

        db.add(ExternalService(
            name=definition.name,
            shortname=definition.shortname,
            component=definition.component,
            enabled=definition.enabled,
            restrictedusers=definition.restrictedusers,
        ))
        created.append(definition.shortname)

    if created:
        db.commit()
        logger.info(f"Registered external services: {', '.join(created)}")
    return created
