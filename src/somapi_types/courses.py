from typing import List
from pydantic import Field

from somapi_types.base import IdListQuery, ProjectionModel


class CourseQuery(IdListQuery):
    category_ids: List[int] = Field(default_factory=list, description="List of category IDs.")


class CourseGet(ProjectionModel):
    id: int = Field(..., description="Course ID")
    category_id: int = Field(..., description="Course Category ID")
    name: str = Field(..., description="Course Name")
