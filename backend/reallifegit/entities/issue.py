"""Issue entity with its embedded comment thread."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import BaseEntity
from .enums import IssuePriority, IssueStatus
from .task import dedupe_labels


class IssueComment(BaseEntity):
    id: str
    content: str
    author: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class Issue(BaseEntity):
    id: str
    number: int = Field(..., ge=1, description="Sequential per project, never reused")
    title: str
    description: str
    status: IssueStatus = IssueStatus.OPEN
    priority: IssuePriority = IssuePriority.MEDIUM
    author: str
    assignee: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = Field(
        default=None, description="Set exactly when status is closed"
    )
    labels: List[str] = Field(default_factory=list)
    comments: List[IssueComment] = Field(default_factory=list)
    project_id: str

    @field_validator("labels")
    @classmethod
    def _unique_labels(cls, value: List[str]) -> List[str]:
        return dedupe_labels(value)
