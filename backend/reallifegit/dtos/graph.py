"""DTOs for project-scoped read models assembled on every request."""

from datetime import date as Date
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reallifegit.entities import (
    Branch,
    Commit,
    CommitEdge,
    Issue,
    Project,
    PullRequest,
    Task,
)


class _ReadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectGraph(_ReadModel):
    """Everything belonging to one project. Never stored."""

    project: Project
    commits: List[Commit] = []
    branches: List[Branch] = []
    edges: List[CommitEdge] = []
    issues: List[Issue] = []
    pull_requests: List[PullRequest] = []
    tasks: List[Task] = []


class ProjectStats(_ReadModel):
    total_commits: int = 0
    total_branches: int = 0
    total_tasks: int = 0
    total_issues: int = 0
    total_pull_requests: int = 0
    active_contributors: int = 0
    # None when the project has neither commits nor branches
    last_activity: Optional[datetime] = None


class ContributionData(_ReadModel):
    """One heatmap cell."""

    date: Date
    commit_count: int = 0
    task_count: int = 0
    intensity: int = Field(0, ge=0, le=4)


class UserActivity(_ReadModel):
    user_id: str
    total_commits: int = 0
    total_tasks: int = 0
    streak_days: int = 0
    contributions: List[ContributionData] = []


class ContributionReport(_ReadModel):
    contributions: List[ContributionData] = []
    user_activity: Dict[str, UserActivity] = {}
