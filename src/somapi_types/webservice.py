from typing import List
from pydantic import Field

from somapi_types.base import ProjectionModel


class ExternalFunctionInfo(ProjectionModel):
    name: str
    description: str
    type: str = "read"
    capabilities: List[str] = Field(default_factory=list)
