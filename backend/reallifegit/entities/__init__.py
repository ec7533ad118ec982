"""Entity models - the values held by the in-memory data store"""

from .base import BaseEntity
from .branch import Branch
from .commit import (
    Commit,
    CommitAuthor,
    CommitEdge,
    CommitStats,
    TaskChange,
    compute_commit_stats,
)

# Shared enums
from .enums import (
    ChangeType,
    EdgeType,
    IssuePriority,
    IssueStatus,
    PullRequestStatus,
    ResolutionStrategy,
    TaskPriority,
    TaskStatus,
)
from .issue import Issue, IssueComment
from .project import Project
from .pull_request import ConflictInfo, ConflictResolution, PullRequest
from .task import Task

__all__ = [
    # Base
    "BaseEntity",
    # Enums
    "ChangeType",
    "EdgeType",
    "IssuePriority",
    "IssueStatus",
    "PullRequestStatus",
    "ResolutionStrategy",
    "TaskPriority",
    "TaskStatus",
    # Graph
    "Project",
    "Commit",
    "CommitAuthor",
    "CommitEdge",
    "CommitStats",
    "TaskChange",
    "compute_commit_stats",
    "Branch",
    # Work items
    "Task",
    "Issue",
    "IssueComment",
    "PullRequest",
    "ConflictInfo",
    "ConflictResolution",
]
