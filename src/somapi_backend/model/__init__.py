from .base import Base, metadata
from .auth import User, ExternalService, ExternalServiceUser, ExternalToken
from .access import (
    ContextLevel,
    Context,
    Role,
    RoleCapability,
    RoleAssignment,
    CAP_ALLOW,
    CAP_PREVENT,
    CAP_PROHIBIT,
)
from .course import (
    CourseCategory,
    Course,
    Module,
    CourseModule,
    Enrolment,
    ENROL_USER_ACTIVE,
    ENROL_USER_SUSPENDED,
)
from .quiz import Quiz, QuizSlot, QuizAttempt, QuizAttemptState
from .question import (
    QuestionBankEntry,
    Question,
    QuestionVersion,
    QuestionVersionStatus,
    QuestionUsage,
    QuestionAttempt,
    QuestionAttemptStep,
    FORMAT_MOODLE,
    FORMAT_HTML,
    FORMAT_PLAIN,
    FORMAT_MARKDOWN,
)
