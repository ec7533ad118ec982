"""
Commit entities - immutable records of task changes.

A commit lists its parents in ``parent_ids``: none for a root commit, one for
an ordinary commit, two or more for a merge commit. ``CommitEdge`` is a read
model derived from those parent links; it is never stored on its own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import BaseEntity
from .enums import ChangeType, EdgeType


class CommitAuthor(BaseEntity):
    name: str
    email: str
    avatar: Optional[str] = None


class CommitStats(BaseEntity):
    tasks_added: int = 0
    tasks_modified: int = 0
    tasks_deleted: int = 0
    total_changes: int = 0


class TaskChange(BaseEntity):
    """Change applied to one task by a commit. Embedded in Commit only."""

    task_id: str
    change_type: ChangeType
    old_values: Dict[str, Any] = Field(default_factory=dict)
    new_values: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None


class Commit(BaseEntity):
    id: str
    hash: str
    short_hash: str
    message: str
    author: CommitAuthor
    timestamp: datetime
    parent_ids: List[str] = Field(default_factory=list)

    # Branch the commit was recorded against; informational, not a foreign key
    branch_name: str
    project_id: str

    changed_tasks: List[TaskChange] = Field(default_factory=list)
    stats: CommitStats = Field(default_factory=CommitStats)

    @property
    def is_root(self) -> bool:
        return not self.parent_ids

    @property
    def is_merge(self) -> bool:
        return len(self.parent_ids) > 1


class CommitEdge(BaseEntity):
    """Link from a parent commit to a child commit."""

    id: str
    from_commit_id: str = Field(alias="from")
    to_commit_id: str = Field(alias="to")
    type: EdgeType = EdgeType.PARENT

    @classmethod
    def between(cls, parent_id: str, child_id: str, edge_type: EdgeType = EdgeType.PARENT) -> "CommitEdge":
        """Edge ids are derived from their endpoints, so rebuilding an edge yields the same id."""
        return cls(
            id=f"edge-{parent_id}-{child_id}",
            from_commit_id=parent_id,
            to_commit_id=child_id,
            type=edge_type,
        )


def compute_commit_stats(changes: List[Any]) -> CommitStats:
    """Count changes per change type; accepts TaskChange models or dicts."""
    counts = {ChangeType.CREATED.value: 0, ChangeType.MODIFIED.value: 0, ChangeType.DELETED.value: 0}
    for change in changes:
        change_type = change.get("change_type") if isinstance(change, dict) else change.change_type
        change_type = getattr(change_type, "value", change_type)
        if change_type in counts:
            counts[change_type] += 1
    return CommitStats(
        tasks_added=counts[ChangeType.CREATED.value],
        tasks_modified=counts[ChangeType.MODIFIED.value],
        tasks_deleted=counts[ChangeType.DELETED.value],
        total_changes=len(changes),
    )
