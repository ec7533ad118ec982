"""Repository layer over the in-memory collections"""

from .base import BaseRepository, sort_entities
from .branch import BranchRepository
from .commit import CommitRepository
from .issue import IssueRepository
from .project import ProjectRepository
from .pull_request import PullRequestRepository
from .task import TaskRepository

__all__ = [
    "BaseRepository",
    "sort_entities",
    "ProjectRepository",
    "CommitRepository",
    "BranchRepository",
    "TaskRepository",
    "IssueRepository",
    "PullRequestRepository",
]
