"""
Projection functions of the SOM API.

Each function takes the requested ids, the calling Principal and a database
session, and returns a list of response models. Authorization and text
formatting are delegated to injectable collaborators.
"""

from .courses import get_courses
from .quizzes import get_quizzes
from .questions import get_questions
from .attempts import get_attempts
from .users import get_users

__all__ = [
    "get_courses",
    "get_quizzes",
    "get_questions",
    "get_attempts",
    "get_users",
]
