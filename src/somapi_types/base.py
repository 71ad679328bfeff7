from typing import List
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ProjectionModel(BaseModel):
    """Base for all wire models. Fields are snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class IdListQuery(BaseModel):
    """
    Base for operation parameters consisting of a single list of integer ids.

    Subclasses declare exactly one ``List[int]`` field. ``None`` is accepted
    as an empty list and duplicates are kept; deduplication is left to the
    primary key lookup in the store.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )

    @field_validator('*', mode='before')
    @classmethod
    def none_is_empty(cls, value):
        if value is None:
            return []
        return value

    @classmethod
    def id_field(cls) -> str:
        return next(iter(cls.model_fields))

    def ids(self) -> List[int]:
        return list(getattr(self, self.id_field()))
