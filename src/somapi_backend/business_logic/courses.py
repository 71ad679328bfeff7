"""Business logic for the course projection."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.business_logic.common import clean_ids, default_collaborators, enter_context
from somapi_backend.permissions import capabilities
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import AuthorizationProvider, ContextRef
from somapi_backend.repositories import CourseRepository
from somapi_backend.services.formatting import TextFormatter
from somapi_backend.settings import settings
from somapi_types.courses import CourseGet

logger = logging.getLogger(__name__)


def get_courses(
    category_ids: Optional[Iterable[int]],
    permissions: Principal,
    db: Session,
    authz: Optional[AuthorizationProvider] = None,
    formatter: Optional[TextFormatter] = None,
) -> List[CourseGet]:
    """
    Courses in the given categories that the caller may see.

    A course is returned when its context validates, the caller holds
    ``moodle/course:view`` (not needed for the site course), and the course
    is visible or the caller can update it or view hidden courses.
    """
    category_ids = clean_ids(category_ids)
    if not category_ids:
        return []

    authz, formatter = default_collaborators(db, authz, formatter)

    result = []
    for course in CourseRepository(db).find_by_categories(category_ids):
        context = enter_context(authz, permissions, ContextRef.course(course.id))
        if context is None:
            continue

        if course.id != settings.SITE_COURSE_ID and not authz.has_capability(
            permissions, capabilities.COURSE_VIEW, context
        ):
            logger.debug(f"Skipping course {course.id}: user {permissions.user_id} lacks {capabilities.COURSE_VIEW}")
            continue

        if (
            authz.has_capability(permissions, capabilities.COURSE_UPDATE, context)
            or course.visible
            or authz.has_capability(permissions, capabilities.COURSE_VIEW_HIDDEN_COURSES, context)
        ):
            result.append(CourseGet(
                id=course.id,
                category_id=course.category_id,
                name=formatter.format_string(course.fullname, context),
            ))

    return result
