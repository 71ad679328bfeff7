from typing import List, Optional
from pydantic import Field

from somapi_types.base import IdListQuery, ProjectionModel


class AttemptQuery(IdListQuery):
    quiz_ids: List[int] = Field(default_factory=list, description="List of quiz IDs.")


class AttemptAnswerGet(ProjectionModel):
    id: int = Field(..., description="Question ID")
    mark: Optional[float] = Field(None, description="Mark received, null if not graded")
    answer: str = Field("", description="Answer given")


class AttemptGet(ProjectionModel):
    id: int = Field(..., description="Attempt ID")
    quiz_id: int = Field(..., description="Quiz ID")
    user_id: int = Field(..., description="User ID")
    start_time: int = Field(..., description="Timestamp of when this attempt was started.")
    finish_time: int = Field(..., description="Timestamp of when this attempt was finished.")
    questions: List[AttemptAnswerGet] = Field(default_factory=list)
