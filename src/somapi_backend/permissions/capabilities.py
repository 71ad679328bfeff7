"""Capability names evaluated by the projection functions."""

COURSE_VIEW = "moodle/course:view"
COURSE_UPDATE = "moodle/course:update"
COURSE_VIEW_HIDDEN_COURSES = "moodle/course:viewhiddencourses"
COURSE_VIEW_HIDDEN_ACTIVITIES = "moodle/course:viewhiddenactivities"
QUIZ_VIEW_REPORTS = "mod/quiz:viewreports"
QUESTION_VIEW_ALL = "moodle/question:viewall"
USER_VIEW_DETAILS = "moodle/user:viewdetails"
