"""
Pull Request Entity - a request to merge one branch into another.

Branches are referenced by name. ``conflicts`` is reserved for a merge step
that detects divergence; nothing in the data layer populates it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from .base import BaseEntity
from .enums import PullRequestStatus, ResolutionStrategy


class ConflictResolution(BaseEntity):
    strategy: ResolutionStrategy
    resolved_value: Any = None
    resolved_by: str
    resolved_at: datetime


class ConflictInfo(BaseEntity):
    """Per-field conflict between the base, incoming and current task values."""

    id: str
    task_id: str
    field: str
    base_value: Any = None
    incoming_value: Any = None
    current_value: Any = None
    resolution: Optional[ConflictResolution] = None


class PullRequest(BaseEntity):
    id: str
    number: int = Field(..., ge=1)
    title: str
    description: str
    from_branch: str
    to_branch: str
    status: PullRequestStatus = PullRequestStatus.OPEN
    author: str
    reviewers: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    merge_commit_id: Optional[str] = None
    conflicts: List[ConflictInfo] = Field(default_factory=list)
    project_id: str
