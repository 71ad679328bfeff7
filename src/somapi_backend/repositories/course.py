"""
Repositories for courses, course modules and enrolments.
"""

from typing import Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..model.course import Course, CourseModule, Enrolment, Module, ENROL_USER_ACTIVE


class CourseRepository(BaseRepository[Course]):
    """Repository for Course entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Course)

    def find_by_categories(self, category_ids: Iterable[int]) -> List[Course]:
        """
        Find all courses in any of the given categories.

        Args:
            category_ids: Course category identifiers

        Returns:
            Courses ordered by id
        """
        return self.find_by_foreign_keys("category_id", category_ids)


class CourseModuleRepository(BaseRepository[CourseModule]):
    """Repository for course modules (activity instances placed in a course)."""

    def __init__(self, db: Session):
        super().__init__(db, CourseModule)

    def find_instance(self, module_name: str, instance_id: int) -> Optional[CourseModule]:
        """
        Find the course module of one activity instance.

        Args:
            module_name: Activity module name, e.g. "quiz"
            instance_id: Id of the activity record

        Returns:
            CourseModule if found, None otherwise
        """
        query = (
            self._query()
            .join(Module, Module.id == CourseModule.module_id)
            .filter(Module.name == module_name, CourseModule.instance == instance_id)
        )
        return self._first(query)

    def find_instances_in_courses(self, module_name: str, course_ids: Iterable[int], model) -> List[Tuple]:
        """
        List all instances of an activity module in the given courses.

        Modules being deleted are excluded. Hidden modules are returned;
        filtering them by capability is the caller's concern.

        Args:
            module_name: Activity module name, e.g. "quiz"
            course_ids: Course identifiers
            model: Activity model class, joined on ``CourseModule.instance``

        Returns:
            (activity, course_module) tuples ordered by course then course module
        """
        course_ids = list(course_ids)
        if not course_ids:
            return []
        query = (
            self.db.query(model, CourseModule)
            .join(CourseModule, CourseModule.instance == model.id)
            .join(Module, Module.id == CourseModule.module_id)
            .filter(
                Module.name == module_name,
                CourseModule.course_id.in_(course_ids),
                CourseModule.deletion_in_progress.is_(False),
            )
            .order_by(CourseModule.course_id, CourseModule.id)
        )
        return [tuple(row) for row in self._all(query)]


class EnrolmentRepository(BaseRepository[Enrolment]):
    """Repository for user enrolments."""

    def __init__(self, db: Session):
        super().__init__(db, Enrolment)

    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        """True if the user has an active enrolment in the course."""
        query = self._query().filter(
            Enrolment.user_id == user_id,
            Enrolment.course_id == course_id,
            Enrolment.status == ENROL_USER_ACTIVE,
        )
        return self._first(query) is not None
