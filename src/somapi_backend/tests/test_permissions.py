"""Tests for capability evaluation, context validation and token authentication."""

import pytest

from somapi_backend.exceptions import InsufficientCapabilityException, InvalidContextException, UnauthorizedException
from somapi_backend.model import CAP_PREVENT, CAP_PROHIBIT, ContextLevel
from somapi_backend.permissions import capabilities
from somapi_backend.permissions.auth import principal_from_token
from somapi_backend.permissions.principal import Principal
from somapi_backend.permissions.provider import ContextRef, DatabaseAuthorizationProvider


@pytest.fixture
def course_site(site):
    category, category_context = site.category()
    course, course_context = site.course(category, "Histology")
    hidden_course, hidden_context = site.course(category, "Hidden Histology", visible=False)
    quiz, cm, module_context = site.quiz(course, "Tissue Quiz")
    hidden_quiz, hidden_cm, hidden_module_context = site.quiz(course, "Hidden Quiz", visible=False)

    instructor_role = site.role("instructor", [capabilities.QUIZ_VIEW_REPORTS])
    student_role = site.role("student")
    site.grant(student_role, capabilities.QUIZ_VIEW_REPORTS, permission=CAP_PREVENT)

    user = site.user("user")
    site.commit()
    return {
        "site": site,
        "category_context": category_context,
        "course": course,
        "course_context": course_context,
        "hidden_course": hidden_course,
        "hidden_context": hidden_context,
        "cm": cm,
        "module_context": module_context,
        "hidden_cm": hidden_cm,
        "hidden_module_context": hidden_module_context,
        "instructor_role": instructor_role,
        "student_role": student_role,
        "user": user,
        "principal": site.principal(user),
    }


@pytest.mark.unit
class TestHasCapability:

    def test_no_roles_no_capability(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        assert not authz.has_capability(
            course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"]
        )

    def test_role_applies_to_descendant_contexts(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], course_site["instructor_role"], course_site["course_context"])
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        assert authz.has_capability(course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"])
        assert not authz.has_capability(
            course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["hidden_context"]
        )

    def test_more_specific_override_wins(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], course_site["instructor_role"], course_site["course_context"])
        site.grant(
            course_site["instructor_role"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"], CAP_PREVENT
        )
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        assert not authz.has_capability(
            course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"]
        )
        # Sibling modules keep the role default
        assert authz.has_capability(
            course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["hidden_module_context"]
        )

    def test_allow_in_one_role_beats_prevent_in_another(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], course_site["instructor_role"], course_site["course_context"])
        site.assign(course_site["user"], course_site["student_role"], course_site["course_context"])
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        assert authz.has_capability(course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"])

    def test_prohibit_cannot_be_overridden(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], course_site["instructor_role"], course_site["course_context"])
        site.grant(
            course_site["instructor_role"], capabilities.QUIZ_VIEW_REPORTS, course_site["category_context"], CAP_PROHIBIT
        )
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        assert not authz.has_capability(
            course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"]
        )

    def test_site_admin_has_every_capability(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db, site_admins=[course_site["user"].id])

        assert authz.has_capability(course_site["principal"], "moodle/anything:atall", course_site["module_context"])
        assert authz.has_capability_anywhere(course_site["principal"], "moodle/anything:atall")

    def test_anonymous_principal_has_nothing(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        assert not authz.has_capability(Principal(), capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"])
        assert not authz.has_capability_anywhere(Principal(), capabilities.QUIZ_VIEW_REPORTS)

    def test_has_capability_anywhere(self, db, course_site):
        site = course_site["site"]
        authz = DatabaseAuthorizationProvider(db)
        assert not authz.has_capability_anywhere(course_site["principal"], capabilities.QUIZ_VIEW_REPORTS)

        site.assign(course_site["user"], course_site["instructor_role"], course_site["course_context"])
        site.commit()

        assert authz.has_capability_anywhere(course_site["principal"], capabilities.QUIZ_VIEW_REPORTS)

    def test_require_capability_raises(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InsufficientCapabilityException) as exc_info:
            authz.require_capability(course_site["principal"], capabilities.QUIZ_VIEW_REPORTS, course_site["module_context"])

        assert exc_info.value.capability == capabilities.QUIZ_VIEW_REPORTS
        assert exc_info.value.status_code == 403


@pytest.mark.unit
class TestContexts:

    def test_resolve_existing_context(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        context = authz.resolve_context(ContextRef.course(course_site["course"].id))

        assert context.id == course_site["course_context"].id
        assert context.contextlevel == ContextLevel.COURSE

    def test_resolve_missing_context_raises(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InvalidContextException):
            authz.resolve_context(ContextRef.module(98765))

    def test_enrolled_user_enters_course(self, db, course_site):
        site = course_site["site"]
        site.enrol(course_site["user"], course_site["course"])
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        authz.validate_context(course_site["principal"], course_site["course_context"])
        authz.validate_context(course_site["principal"], course_site["module_context"])

    def test_suspended_enrolment_does_not_count(self, db, course_site):
        site = course_site["site"]
        site.enrol(course_site["user"], course_site["course"], status=1)
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InvalidContextException):
            authz.validate_context(course_site["principal"], course_site["course_context"])

    def test_course_view_enters_course(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], site.role("viewer", [capabilities.COURSE_VIEW]))
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        authz.validate_context(course_site["principal"], course_site["course_context"])

    def test_hidden_course_needs_hidden_rights(self, db, course_site):
        site = course_site["site"]
        site.assign(course_site["user"], site.role("viewer", [capabilities.COURSE_VIEW]))
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InvalidContextException):
            authz.validate_context(course_site["principal"], course_site["hidden_context"])

        site.grant(site.roles["viewer"], capabilities.COURSE_VIEW_HIDDEN_COURSES)
        site.commit()
        authz.validate_context(course_site["principal"], course_site["hidden_context"])

    def test_hidden_module_needs_hidden_activity_rights(self, db, course_site):
        site = course_site["site"]
        site.enrol(course_site["user"], course_site["course"])
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InvalidContextException):
            authz.validate_context(course_site["principal"], course_site["hidden_module_context"])

    def test_module_being_deleted_is_invalid(self, db, course_site):
        site = course_site["site"]
        site.enrol(course_site["user"], course_site["course"])
        course_site["cm"].deletion_in_progress = True
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        with pytest.raises(InvalidContextException):
            authz.validate_context(course_site["principal"], course_site["module_context"])

    def test_site_course_is_open(self, db, course_site):
        site = course_site["site"]
        authz = DatabaseAuthorizationProvider(db, site_course_id=site.site_course.id)

        authz.validate_context(course_site["principal"], site.site_course_context)

    def test_system_context_is_open(self, db, course_site):
        authz = DatabaseAuthorizationProvider(db)

        authz.validate_context(course_site["principal"], course_site["site"].system)

    def test_validate_courses_reports_warnings(self, db, course_site):
        site = course_site["site"]
        site.enrol(course_site["user"], course_site["course"])
        site.commit()
        authz = DatabaseAuthorizationProvider(db)

        courses, warnings = authz.validate_courses(
            course_site["principal"], [course_site["course"], course_site["hidden_course"]]
        )

        assert courses == [course_site["course"]]
        assert [w["itemid"] for w in warnings] == [course_site["hidden_course"].id]
        assert warnings[0]["item"] == "course"


@pytest.mark.unit
class TestTokenAuthentication:

    @pytest.fixture
    def tokens(self, site):
        service = site.service()
        user = site.user("caller")
        suspended = site.user("suspended", suspended=True)
        site.token(user, service, "valid-token")
        site.token(user, service, "old-token", validuntil=1000)
        site.token(suspended, service, "suspended-token")
        site.commit()
        return user

    def test_valid_token(self, db, tokens):
        principal = principal_from_token("valid-token", db)

        assert principal.user_id == tokens.id
        assert principal.service == "som_api"
        assert principal.is_admin is False

    def test_unknown_token(self, db, tokens):
        with pytest.raises(UnauthorizedException):
            principal_from_token("nope", db)

    def test_expired_token(self, db, tokens):
        with pytest.raises(UnauthorizedException):
            principal_from_token("old-token", db, now=2000)

        assert principal_from_token("old-token", db, now=500).user_id == tokens.id

    def test_suspended_user(self, db, tokens):
        with pytest.raises(UnauthorizedException) as exc_info:
            principal_from_token("suspended-token", db)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
