"""DTOs for list queries: options, per-entity filters and paginated pages."""

from __future__ import annotations

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reallifegit.entities.enums import (
    IssuePriority,
    IssueStatus,
    PullRequestStatus,
    TaskPriority,
    TaskStatus,
)

T = TypeVar("T")
FilterT = TypeVar("FilterT", bound=BaseModel)


class _Filters(BaseModel):
    """Unknown filter keys are rejected instead of silently ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        use_enum_values=True,
    )


class ProjectFilters(_Filters):
    search: Optional[str] = Field(None, description="Case-insensitive match on name/description")
    owner: Optional[str] = None
    is_private: Optional[bool] = None


class CommitFilters(_Filters):
    branch: Optional[str] = None
    author: Optional[str] = Field(None, description="Substring of author name or email")


class BranchFilters(_Filters):
    is_default: Optional[bool] = None
    is_protected: Optional[bool] = None


class TaskFilters(_Filters):
    status: Optional[TaskStatus] = None
    assignee: Optional[str] = None
    priority: Optional[TaskPriority] = None


class IssueFilters(_Filters):
    status: Optional[IssueStatus] = None
    assignee: Optional[str] = None
    priority: Optional[IssuePriority] = None


class PullRequestFilters(_Filters):
    status: Optional[PullRequestStatus] = None
    author: Optional[str] = None


class QueryOptions(BaseModel, Generic[FilterT]):
    """
    Options for list queries.

    ``limit`` defaults to Settings.DEFAULT_PAGE_LIMIT and is clamped to
    Settings.MAX_PAGE_LIMIT by the store.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "desc"
    filters: Optional[FilterT] = None


class PaginationInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    limit: int
    offset: int
    has_next: bool
    has_prev: bool


class Page(BaseModel, Generic[T]):
    """Paginated list of entities."""

    data: List[T]
    pagination: PaginationInfo
