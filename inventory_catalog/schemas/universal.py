from typing import Any, List, Literal

from pydantic import BaseModel, Field

FilterOp = Literal["=", "!=", ">", "<", ">=", "<=", "~"]


class FilterClause(BaseModel):
    field: str
    op: FilterOp = "="
    value: Any = None


class SortClause(BaseModel):
    field: str
    dir: Literal["asc", "desc"] = "asc"


class Page(BaseModel):
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class UniversalQuery(BaseModel):
    """Body of the admin `/query` endpoints."""

    filters: List[FilterClause] = Field(default_factory=list)
    sort: List[SortClause] = Field(default_factory=list)
    page: Page = Field(default_factory=Page)
