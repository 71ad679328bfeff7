"""
Repository layer for direct database access.

Each repository is a read-only, batch-oriented view over one model.
"""

from .base import BaseRepository, RepositoryError, NotFoundError
from .course import CourseRepository, CourseModuleRepository, EnrolmentRepository
from .quiz import QuizRepository, QuizSlotRepository, QuizAttemptRepository
from .question import QuestionRepository, QuestionVersionRepository, QuestionUsageRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "NotFoundError",
    "CourseRepository",
    "CourseModuleRepository",
    "EnrolmentRepository",
    "QuizRepository",
    "QuizSlotRepository",
    "QuizAttemptRepository",
    "QuestionRepository",
    "QuestionVersionRepository",
    "QuestionUsageRepository",
    "UserRepository",
]
