from typing import List
from pydantic import Field

from somapi_types.base import IdListQuery, ProjectionModel


class QuestionQuery(IdListQuery):
    quiz_ids: List[int] = Field(default_factory=list, description="List of quiz IDs.")


class QuestionGet(ProjectionModel):
    id: int = Field(..., description="Question ID")
    name: str = Field(..., description="Question name")
    text: str = Field(..., description="Question text")
    type: str = Field(..., description="Question type")
    default_marks: float = Field(..., description="Default marks for this question.")
    quiz_ids: List[int] = Field(default_factory=list, description="IDs of the requested quizzes using this question")
    revision_ids: List[int] = Field(default_factory=list, description="Question IDs of all revisions of this question")
    question_bank_entry_id: int = Field(..., description="The question bank entry id for this question")
