"""Shared enums for entity status fields."""

from enum import Enum


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ChangeType(str, Enum):
    """How a commit touched a task."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


class IssueStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class IssuePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PullRequestStatus(str, Enum):
    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"
    DRAFT = "draft"


class EdgeType(str, Enum):
    """Kind of link between two commits in the graph."""

    PARENT = "parent"
    MERGE = "merge"
    BRANCH = "branch"


class ResolutionStrategy(str, Enum):
    ACCEPT_INCOMING = "accept_incoming"
    ACCEPT_CURRENT = "accept_current"
    MANUAL = "manual"


def enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]
