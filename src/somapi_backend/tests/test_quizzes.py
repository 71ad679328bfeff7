"""Tests for the quiz projection."""

import logging
from unittest.mock import MagicMock

import pytest

from somapi_backend.business_logic import get_quizzes
from somapi_backend.exceptions import InvalidContextException
from somapi_backend.model import CAP_PREVENT, CourseModule
from somapi_backend.permissions import capabilities
from somapi_backend.permissions.principal import Principal
from somapi_backend.settings import settings


@pytest.fixture
def course_with_quizzes(site):
    category, _ = site.category()
    course, course_context = site.course(category, "Pharmacology")
    other_course, _ = site.course(category, "Pathology")

    midterm, midterm_cm, midterm_context = site.quiz(course, "Midterm")
    final, final_cm, final_context = site.quiz(course, "Final")
    hidden, hidden_cm, _ = site.quiz(course, "Practice", visible=False)
    elsewhere, _, _ = site.quiz(other_course, "Elsewhere")

    q1, entry1 = site.question("Dosage")
    q2, entry2 = site.question("Half-life")
    site.slot(midterm, entry1, 1, maxmark=2.0)
    site.slot(midterm, entry2, 2, maxmark=3.5)
    site.slot(final, entry2, 1, maxmark=5.0)

    instructor_role = site.role("instructor", [capabilities.COURSE_VIEW, capabilities.QUIZ_VIEW_REPORTS])
    instructor = site.user("instructor")
    site.assign(instructor, instructor_role, course_context)

    manager_role = site.role("manager", [
        capabilities.COURSE_VIEW,
        capabilities.QUIZ_VIEW_REPORTS,
        capabilities.COURSE_VIEW_HIDDEN_ACTIVITIES,
    ])
    manager = site.user("manager")
    site.assign(manager, manager_role)

    site.commit()
    return {
        "site": site,
        "course": course,
        "other_course": other_course,
        "midterm": midterm,
        "midterm_cm": midterm_cm,
        "midterm_context": midterm_context,
        "final": final,
        "final_context": final_context,
        "hidden": hidden,
        "elsewhere": elsewhere,
        "questions": (q1, q2),
        "instructor_role": instructor_role,
        "instructor": site.principal(instructor),
        "manager": site.principal(manager),
    }


@pytest.mark.unit
class TestGetQuizzes:

    def test_empty_input_touches_nothing(self):
        db = MagicMock()
        authz = MagicMock()

        assert get_quizzes([], Principal(user_id=3), db, authz=authz) == []

        db.query.assert_not_called()
        assert authz.method_calls == []

    def test_lists_quizzes_with_slot_questions(self, db, course_with_quizzes):
        data = course_with_quizzes
        q1, q2 = data["questions"]

        result = get_quizzes([data["course"].id], data["instructor"], db)

        assert [quiz.id for quiz in result] == [data["midterm"].id, data["final"].id]
        midterm = result[0]
        assert midterm.name == "Midterm"
        assert midterm.course_id == data["course"].id
        assert midterm.course_module_id == data["midterm_cm"].id
        assert [(q.id, q.max_marks) for q in midterm.questions] == [(q1.id, 2.0), (q2.id, 3.5)]
        assert [(q.id, q.max_marks) for q in result[1].questions] == [(q2.id, 5.0)]

    def test_max_marks_come_from_the_slot(self, db, course_with_quizzes):
        data = course_with_quizzes
        _, q2 = data["questions"]

        result = get_quizzes([data["course"].id], data["instructor"], db)

        assert q2.defaultmark == 1.0
        assert result[1].questions[0].max_marks == 5.0

    def test_quiz_without_report_rights_is_omitted(self, db, course_with_quizzes):
        data = course_with_quizzes
        data["site"].grant(
            data["instructor_role"], capabilities.QUIZ_VIEW_REPORTS, data["final_context"], CAP_PREVENT
        )
        data["site"].commit()

        result = get_quizzes([data["course"].id], data["instructor"], db)

        assert [quiz.id for quiz in result] == [data["midterm"].id]

    def test_hidden_quiz_needs_hidden_activity_rights(self, db, course_with_quizzes):
        data = course_with_quizzes

        instructor_ids = [quiz.id for quiz in get_quizzes([data["course"].id], data["instructor"], db)]
        manager_ids = [quiz.id for quiz in get_quizzes([data["course"].id], data["manager"], db)]

        assert data["hidden"].id not in instructor_ids
        assert data["hidden"].id in manager_ids

    def test_inaccessible_course_is_skipped_with_warning(self, db, course_with_quizzes, caplog):
        data = course_with_quizzes

        with caplog.at_level(logging.WARNING, logger="somapi_backend.business_logic.quizzes"):
            result = get_quizzes([data["course"].id, data["other_course"].id], data["instructor"], db)

        assert data["elsewhere"].id not in [quiz.id for quiz in result]
        assert f"Course {data['other_course'].id} skipped" in caplog.text

    def test_manager_sees_quizzes_of_all_courses(self, db, course_with_quizzes):
        data = course_with_quizzes

        result = get_quizzes([data["course"].id, data["other_course"].id], data["manager"], db)

        assert [quiz.id for quiz in result] == [
            data["midterm"].id,
            data["final"].id,
            data["hidden"].id,
            data["elsewhere"].id,
        ]

    def test_unknown_course_ids_yield_nothing(self, db, course_with_quizzes):
        assert get_quizzes([9999], course_with_quizzes["manager"], db) == []

    def test_quiz_module_without_context_is_skipped(self, db, course_with_quizzes):
        data = course_with_quizzes
        orphan = _quiz_module_without_context(data)

        result = get_quizzes([data["course"].id], data["manager"], db)

        assert orphan.id not in [quiz.id for quiz in result]
        assert data["midterm"].id in [quiz.id for quiz in result]

    def test_quiz_module_without_context_aborts_when_configured(self, db, course_with_quizzes, monkeypatch):
        data = course_with_quizzes
        _quiz_module_without_context(data)
        monkeypatch.setattr(settings, "INVALID_CONTEXT_POLICY", "raise")

        with pytest.raises(InvalidContextException):
            get_quizzes([data["course"].id], data["manager"], db)

    def test_repeated_calls_are_identical(self, db, course_with_quizzes):
        data = course_with_quizzes

        first = get_quizzes([data["course"].id], data["manager"], db)
        second = get_quizzes([data["course"].id], data["manager"], db)

        assert first == second
        assert len(first) == 3


def _quiz_module_without_context(data):
    site = data["site"]
    quiz, _, _ = site.quiz(data["course"], "Orphan", with_module=False)
    site.db.add(CourseModule(
        course_id=data["course"].id,
        module_id=site.quiz_module.id,
        instance=quiz.id,
        visible=True,
    ))
    site.commit()
    return quiz
