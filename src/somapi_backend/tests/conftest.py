"""
Shared fixtures: an in-memory SQLite store and a builder for the records a
site needs (contexts, roles, courses, quizzes, questions, attempts, users,
services and tokens).
"""

from typing import Iterable, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from somapi_backend.model import (
    Base,
    CAP_ALLOW,
    Context,
    ContextLevel,
    Course,
    CourseCategory,
    CourseModule,
    Enrolment,
    ExternalService,
    ExternalServiceUser,
    ExternalToken,
    Module,
    Question,
    QuestionAttempt,
    QuestionAttemptStep,
    QuestionBankEntry,
    QuestionUsage,
    QuestionVersion,
    QuestionVersionStatus,
    Quiz,
    QuizAttempt,
    QuizAttemptState,
    QuizSlot,
    Role,
    RoleAssignment,
    RoleCapability,
    User,
    FORMAT_HTML,
)
from somapi_backend.permissions.principal import Principal


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


class SiteBuilder:
    """Creates consistent site records; every method flushes so ids are set."""

    def __init__(self, db: Session):
        self.db = db
        self.system = self.context(ContextLevel.SYSTEM, 0)
        self.site_course = self._add(Course(id=1, category_id=None, fullname="Site", shortname="site"))
        self.site_course_context = self.context(ContextLevel.COURSE, self.site_course.id, self.system)
        self.quiz_module = self._add(Module(name="quiz"))
        self.roles = {}

    def _add(self, entity):
        self.db.add(entity)
        self.db.flush()
        return entity

    def commit(self):
        self.db.commit()

    # Contexts and permissions

    def context(self, level: int, instance_id: int, parent: Optional[Context] = None) -> Context:
        context = self._add(Context(contextlevel=level, instance_id=instance_id))
        if parent is None:
            context.path = f"/{context.id}"
            context.depth = 1
        else:
            context.path = f"{parent.path}/{context.id}"
            context.depth = parent.depth + 1
        self.db.flush()
        return context

    def role(self, shortname: str, capabilities: Iterable[str] = ()) -> Role:
        role = self._add(Role(shortname=shortname))
        for capability in capabilities:
            self.grant(role, capability)
        self.roles[shortname] = role
        return role

    def grant(self, role: Role, capability: str, context: Optional[Context] = None, permission: int = CAP_ALLOW):
        return self._add(RoleCapability(
            role_id=role.id,
            context_id=(context or self.system).id,
            capability=capability,
            permission=permission,
        ))

    def assign(self, user: User, role: Role, context: Optional[Context] = None):
        return self._add(RoleAssignment(role_id=role.id, context_id=(context or self.system).id, user_id=user.id))

    # Users and services

    def user(self, username: str, idnumber: str = "", deleted: bool = False, suspended: bool = False) -> User:
        return self._add(User(username=username, idnumber=idnumber, deleted=deleted, suspended=suspended))

    def principal(self, user: User, service: str = "som_api") -> Principal:
        return Principal(user_id=user.id, service=service)

    def service(self, shortname: str = "som_api", enabled: bool = True, restrictedusers: bool = True) -> ExternalService:
        return self._add(ExternalService(
            name=f"Service {shortname}",
            shortname=shortname,
            component="tool_ucsfsomapi",
            enabled=enabled,
            restrictedusers=restrictedusers,
        ))

    def authorise(self, service: ExternalService, user: User, validuntil: Optional[int] = None):
        return self._add(ExternalServiceUser(externalservice_id=service.id, user_id=user.id, validuntil=validuntil))

    def token(self, user: User, service: ExternalService, token: str, validuntil: Optional[int] = None):
        return self._add(ExternalToken(
            token=token,
            user_id=user.id,
            externalservice_id=service.id,
            validuntil=validuntil,
        ))

    # Courses

    def category(self, name: str = "Medicine") -> Tuple[CourseCategory, Context]:
        category = self._add(CourseCategory(name=name))
        return category, self.context(ContextLevel.COURSECAT, category.id, self.system)

    def course(
        self,
        category: CourseCategory,
        fullname: str,
        visible: bool = True,
        with_context: bool = True,
    ) -> Tuple[Course, Optional[Context]]:
        course = self._add(Course(
            category_id=category.id,
            fullname=fullname,
            shortname=fullname.lower().replace(" ", "-"),
            visible=visible,
        ))
        if not with_context:
            return course, None
        parent = (
            self.db.query(Context)
            .filter(Context.contextlevel == ContextLevel.COURSECAT, Context.instance_id == category.id)
            .first()
        )
        return course, self.context(ContextLevel.COURSE, course.id, parent)

    def enrol(self, user: User, course: Course, status: int = 0):
        return self._add(Enrolment(course_id=course.id, user_id=user.id, status=status))

    def quiz(
        self,
        course: Course,
        name: str,
        visible: bool = True,
        with_module: bool = True,
    ) -> Tuple[Quiz, Optional[CourseModule], Optional[Context]]:
        quiz = self._add(Quiz(course_id=course.id, name=name))
        if not with_module:
            return quiz, None, None
        cm = self._add(CourseModule(
            course_id=course.id,
            module_id=self.quiz_module.id,
            instance=quiz.id,
            visible=visible,
        ))
        course_context = (
            self.db.query(Context)
            .filter(Context.contextlevel == ContextLevel.COURSE, Context.instance_id == course.id)
            .first()
        )
        return quiz, cm, self.context(ContextLevel.MODULE, cm.id, course_context)

    # Questions

    def question(
        self,
        name: str,
        bank_entry: Optional[QuestionBankEntry] = None,
        version: int = 1,
        status: str = QuestionVersionStatus.READY,
        text: str = "<p>What is it?</p>",
        text_format: int = FORMAT_HTML,
        qtype: str = "multichoice",
        defaultmark: float = 1.0,
    ) -> Tuple[Question, QuestionBankEntry]:
        if bank_entry is None:
            bank_entry = self._add(QuestionBankEntry(questioncategory_id=1))
        question = self._add(Question(
            name=name,
            questiontext=text,
            questiontextformat=text_format,
            defaultmark=defaultmark,
            qtype=qtype,
        ))
        self._add(QuestionVersion(
            questionbankentry_id=bank_entry.id,
            version=version,
            question_id=question.id,
            status=status,
        ))
        return question, bank_entry

    def slot(
        self,
        quiz: Quiz,
        bank_entry: QuestionBankEntry,
        slot: int,
        maxmark: float = 1.0,
        version: Optional[int] = None,
    ) -> QuizSlot:
        return self._add(QuizSlot(
            quiz_id=quiz.id,
            slot=slot,
            page=slot,
            maxmark=maxmark,
            questionbankentry_id=bank_entry.id,
            version=version,
        ))

    # Attempts

    def attempt(
        self,
        quiz: Quiz,
        user: User,
        state: str = QuizAttemptState.FINISHED,
        answers: Iterable[Tuple[Question, float, Optional[float], Optional[str]]] = (),
        timestart: int = 1618500000,
        timefinish: int = 1618503600,
        context: Optional[Context] = None,
    ) -> QuizAttempt:
        """
        ``answers`` are (question, maxmark, fraction, response summary) per
        slot, in slot order. A fraction of None leaves the slot ungraded.
        """
        usage = self._add(QuestionUsage(context_id=(context or self.system).id))
        for slot, (question, maxmark, fraction, summary) in enumerate(answers, start=1):
            qa = self._add(QuestionAttempt(
                questionusage_id=usage.id,
                slot=slot,
                question_id=question.id,
                maxmark=maxmark,
                responsesummary=summary,
            ))
            self._add(QuestionAttemptStep(questionattempt_id=qa.id, sequencenumber=0, state="todo"))
            if fraction is not None:
                self._add(QuestionAttemptStep(
                    questionattempt_id=qa.id,
                    sequencenumber=1,
                    state="gradedright" if fraction == 1 else "gradedpartial",
                    fraction=fraction,
                ))
        return self._add(QuizAttempt(
            quiz_id=quiz.id,
            user_id=user.id,
            uniqueid=usage.id,
            state=state,
            timestart=timestart,
            timefinish=timefinish if state != QuizAttemptState.IN_PROGRESS else 0,
        ))


@pytest.fixture
def site(db) -> SiteBuilder:
    return SiteBuilder(db)
