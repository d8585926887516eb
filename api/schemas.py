from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class FilterSpecModel(BaseModel):
    search_text: str = ""
    year_filter: Optional[Union[int, str]] = ""


class SortSpecModel(BaseModel):
    column: Literal["name", "year", "introduced_date", "sale_start_date", "removed_date"] = "introduced_date"
    direction: Literal["asc", "desc"] = "desc"


class CapsuleQueryModel(BaseModel):
    filters: FilterSpecModel = Field(default_factory=FilterSpecModel)
    sort: SortSpecModel = Field(default_factory=SortSpecModel)


class MetaYearsResponse(BaseModel):
    years: List[int]
