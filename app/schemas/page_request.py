from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Tuple


class FilterEntry(BaseModel):
    """One structured entry of the ``filter[]`` JSON array.

    Carried through to the resource untouched; how it is interpreted is up to
    the resource.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    option: str = ""
    operator: str = ""
    value: str = ""
    value_type: str = Field(default="", alias="type")

    @field_validator("value", mode="before")
    @classmethod
    def null_value_is_empty(cls, value):
        return "" if value is None else value


class PageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = 0
    per_page: int = 0
    search: str = ""
    sort_by: str = ""
    sort_order: str = ""
    filters: Tuple[FilterEntry, ...] = ()
    projections: Tuple[str, ...] = ()
