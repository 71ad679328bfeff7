from typing import List
from pydantic import Field

from somapi_types.base import IdListQuery, ProjectionModel


class UserQuery(IdListQuery):
    user_ids: List[int] = Field(default_factory=list, description="List of user IDs.")


class UserGet(ProjectionModel):
    id: int = Field(..., description="User ID")
    ucid: str = Field("", description="UC ID")
