"""
Authorization provider: context resolution and capability checks.

The projection functions depend only on the AuthorizationProvider interface.
DatabaseAuthorizationProvider implements it over the context and role tables
of the store.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy import distinct
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from somapi_backend.exceptions import InsufficientCapabilityException, InvalidContextException
from somapi_backend.model.access import (
    CAP_ALLOW,
    CAP_PROHIBIT,
    Context,
    ContextLevel,
    RoleAssignment,
    RoleCapability,
)
from somapi_backend.model.course import Course
from somapi_backend.permissions import capabilities
from somapi_backend.permissions.principal import Principal
from somapi_backend.repositories import (
    CourseModuleRepository,
    CourseRepository,
    EnrolmentRepository,
    RepositoryError,
)
from somapi_backend.settings import settings

logger = logging.getLogger(__name__)


class ContextRef(NamedTuple):
    """Reference to the authorization context of one entity."""

    level: int
    instance_id: int

    @classmethod
    def course(cls, course_id: int) -> "ContextRef":
        return cls(ContextLevel.COURSE, course_id)

    @classmethod
    def module(cls, course_module_id: int) -> "ContextRef":
        return cls(ContextLevel.MODULE, course_module_id)


class AuthorizationProvider(ABC):
    """Interface to the host permission model."""

    @abstractmethod
    def resolve_context(self, ref: ContextRef) -> Context:
        """Return the context for ``ref`` or raise InvalidContextException."""

    @abstractmethod
    def validate_context(self, principal: Principal, context: Context) -> None:
        """Raise InvalidContextException if the caller cannot enter ``context``."""

    @abstractmethod
    def has_capability(self, principal: Principal, capability: str, context: Context) -> bool:
        """True if the caller holds ``capability`` in ``context``."""

    @abstractmethod
    def has_capability_anywhere(self, principal: Principal, capability: str) -> bool:
        """True if the caller holds ``capability`` in at least one context."""

    def require_capability(self, principal: Principal, capability: str, context: Context) -> None:
        if not self.has_capability(principal, capability, context):
            raise InsufficientCapabilityException(
                detail=f"Missing capability {capability}",
                capability=capability,
                user_id=principal.user_id,
            )

    def validate_courses(
        self, principal: Principal, courses: Iterable[Course]
    ) -> Tuple[List[Course], List[Dict]]:
        """
        Keep the courses whose context the caller can enter.

        Courses that fail validation are reported as warnings instead of
        raising, so one inaccessible course never fails the batch.

        Returns:
            (accessible courses in input order, warnings)
        """
        accessible = []
        warnings = []
        for course in courses:
            try:
                context = self.resolve_context(ContextRef.course(course.id))
                self.validate_context(principal, context)
            except InvalidContextException as e:
                warnings.append({
                    "item": "course",
                    "itemid": course.id,
                    "warningcode": "1",
                    "message": f"No access rights in course context: {e.detail}",
                })
                continue
            accessible.append(course)
        return accessible, warnings


class DatabaseAuthorizationProvider(AuthorizationProvider):
    """
    Capability evaluation over the ``context``, ``role_assignment`` and
    ``role_capability`` tables.

    A role assigned in a context applies to that context and all of its
    descendants. For each assigned role the permission defined in the most
    specific context on the path wins, except that a prohibit anywhere on the
    path always denies. Across roles, any prohibit denies and any allow grants.
    """

    def __init__(
        self,
        db: Session,
        site_course_id: Optional[int] = None,
        site_admins: Optional[Iterable[int]] = None,
    ):
        self.db = db
        self.site_course_id = site_course_id if site_course_id is not None else settings.SITE_COURSE_ID
        self.site_admins = set(site_admins if site_admins is not None else settings.SITE_ADMINS)
        self.courses = CourseRepository(db)
        self.course_modules = CourseModuleRepository(db)
        self.enrolments = EnrolmentRepository(db)

    def is_site_admin(self, principal: Principal) -> bool:
        return principal.is_admin or (
            principal.user_id is not None and principal.user_id in self.site_admins
        )

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    def resolve_context(self, ref: ContextRef) -> Context:
        try:
            context = (
                self.db.query(Context)
                .filter(Context.contextlevel == ref.level, Context.instance_id == ref.instance_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to resolve context {ref}: {e}") from e

        if context is None:
            raise InvalidContextException(
                detail=f"No context at level {ref.level} for instance {ref.instance_id}",
                context={"level": ref.level, "instance_id": ref.instance_id},
            )
        return context

    def validate_context(self, principal: Principal, context: Context) -> None:
        if context.contextlevel == ContextLevel.COURSE:
            course = self.courses.get_by_id_optional(context.instance_id)
            if course is None:
                raise InvalidContextException(detail=f"Course {context.instance_id} does not exist")
            self._check_course_access(principal, course, context)

        elif context.contextlevel == ContextLevel.MODULE:
            cm = self.course_modules.get_by_id_optional(context.instance_id)
            if cm is None or cm.deletion_in_progress:
                raise InvalidContextException(detail=f"Course module {context.instance_id} does not exist")

            course = self.courses.get_by_id_optional(cm.course_id)
            if course is None:
                raise InvalidContextException(detail=f"Course {cm.course_id} does not exist")
            course_context = self.resolve_context(ContextRef.course(course.id))
            self._check_course_access(principal, course, course_context)

            if not cm.visible and not self.has_capability(
                principal, capabilities.COURSE_VIEW_HIDDEN_ACTIVITIES, context
            ):
                raise InvalidContextException(detail=f"Course module {cm.id} is hidden")

        # System, user and category contexts need no login checks

    def _check_course_access(self, principal: Principal, course: Course, context: Context) -> None:
        if course.id == self.site_course_id:
            return

        if not course.visible and not self.has_capability(
            principal, capabilities.COURSE_VIEW_HIDDEN_COURSES, context
        ):
            raise InvalidContextException(detail=f"Course {course.id} is hidden")

        if self.is_site_admin(principal):
            return

        if principal.user_id is not None and self.enrolments.is_enrolled(principal.user_id, course.id):
            return

        if self.has_capability(principal, capabilities.COURSE_VIEW, context):
            return

        raise InvalidContextException(detail=f"Not enrolled in course {course.id}")

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def has_capability(self, principal: Principal, capability: str, context: Context) -> bool:
        if principal.user_id is None:
            return False
        if self.is_site_admin(principal):
            return True

        path = context.path_ids()
        # Position on the path, higher means more specific
        specificity = {context_id: index for index, context_id in enumerate(path)}

        try:
            role_ids = [
                row[0] for row in (
                    self.db.query(distinct(RoleAssignment.role_id))
                    .filter(
                        RoleAssignment.user_id == principal.user_id,
                        RoleAssignment.context_id.in_(path),
                    )
                    .all()
                )
            ]
            if not role_ids:
                return False

            definitions = (
                self.db.query(RoleCapability)
                .filter(
                    RoleCapability.role_id.in_(role_ids),
                    RoleCapability.capability == capability,
                    RoleCapability.context_id.in_(path),
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to evaluate {capability}: {e}") from e

        per_role: Dict[int, List[RoleCapability]] = {}
        for definition in definitions:
            per_role.setdefault(definition.role_id, []).append(definition)

        allowed = False
        for role_definitions in per_role.values():
            if any(d.permission == CAP_PROHIBIT for d in role_definitions):
                return False
            most_specific = max(role_definitions, key=lambda d: specificity[d.context_id])
            if most_specific.permission == CAP_ALLOW:
                allowed = True

        return allowed

    def has_capability_anywhere(self, principal: Principal, capability: str) -> bool:
        if principal.user_id is None:
            return False
        if self.is_site_admin(principal):
            return True

        try:
            definitions = (
                self.db.query(RoleCapability)
                .join(RoleAssignment, RoleAssignment.role_id == RoleCapability.role_id)
                .filter(
                    RoleAssignment.user_id == principal.user_id,
                    RoleCapability.capability == capability,
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to evaluate {capability}: {e}") from e

        prohibited_roles = {d.role_id for d in definitions if d.permission == CAP_PROHIBIT}
        return any(
            d.permission == CAP_ALLOW and d.role_id not in prohibited_roles
            for d in definitions
        )
