"""Task entity - the unit of work tracked by commits."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from .base import BaseEntity
from .enums import TaskPriority, TaskStatus


def dedupe_labels(labels: List[str]) -> List[str]:
    """Drop repeated labels, keeping first-seen order."""
    return list(dict.fromkeys(labels))


class Task(BaseEntity):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    due_date: Optional[datetime] = None
    labels: List[str] = Field(default_factory=list)

    # Opaque passthrough: no invariants are validated on metadata contents
    metadata: Dict[str, Any] = Field(default_factory=dict)

    project_id: str
    branch_id: Optional[str] = None

    @field_validator("labels")
    @classmethod
    def _unique_labels(cls, value: List[str]) -> List[str]:
        return dedupe_labels(value)
