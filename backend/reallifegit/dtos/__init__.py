"""Request/response models exchanged with the data store"""

from .graph import (
    ContributionData,
    ContributionReport,
    ProjectGraph,
    ProjectStats,
    UserActivity,
)
from .query import (
    BranchFilters,
    CommitFilters,
    IssueFilters,
    Page,
    PaginationInfo,
    ProjectFilters,
    PullRequestFilters,
    QueryOptions,
    TaskFilters,
)
from .requests import (
    CreateBranchRequest,
    CreateCommitRequest,
    CreatePullRequestRequest,
    request_payload,
)
from .store import DataLayerHealth, StoreStats

__all__ = [
    # Queries
    "QueryOptions",
    "Page",
    "PaginationInfo",
    "ProjectFilters",
    "BranchFilters",
    "CommitFilters",
    "TaskFilters",
    "IssueFilters",
    "PullRequestFilters",
    # Requests
    "CreateCommitRequest",
    "CreateBranchRequest",
    "CreatePullRequestRequest",
    "request_payload",
    # Read models
    "ProjectGraph",
    "ProjectStats",
    "ContributionData",
    "ContributionReport",
    "UserActivity",
    # Store
    "StoreStats",
    "DataLayerHealth",
]
