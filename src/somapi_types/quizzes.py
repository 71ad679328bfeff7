from typing import List
from pydantic import Field

from somapi_types.base import IdListQuery, ProjectionModel


class QuizQuery(IdListQuery):
    course_ids: List[int] = Field(default_factory=list, description="List of course IDs.")


class QuizQuestionGet(ProjectionModel):
    id: int = Field(..., description="Question ID")
    max_marks: float = Field(..., description="Maximum marks for this question.")


class QuizGet(ProjectionModel):
    id: int = Field(..., description="Quiz ID")
    name: str = Field(..., description="Quiz Name")
    course_id: int = Field(..., description="Course ID")
    course_module_id: int = Field(..., description="Course Module ID")
    questions: List[QuizQuestionGet] = Field(default_factory=list)
