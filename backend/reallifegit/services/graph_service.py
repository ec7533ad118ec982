"""
Project graph assembly.

Joins the store's collections by foreign key to build the project-scoped
``ProjectGraph`` and ``ProjectStats`` read models. Holds no state of its own;
callers hold the store lock while these methods run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from reallifegit.dtos.graph import ProjectGraph, ProjectStats
from reallifegit.entities import Branch, Commit, CommitEdge, EdgeType

if TYPE_CHECKING:
    from reallifegit.services.data_store import DataStore

logger = logging.getLogger(__name__)


def derive_edges(commits: Iterable[Commit]) -> List[CommitEdge]:
    """
    Edges implied by ``parent_ids``, kept only when both ends are in ``commits``.

    The first parent yields a ``parent`` edge, any further parent a ``merge``
    edge.
    """
    commits = list(commits)
    known = {commit.id for commit in commits}
    edges: List[CommitEdge] = []
    for commit in commits:
        for index, parent_id in enumerate(commit.parent_ids):
            if parent_id not in known:
                continue
            edge_type = EdgeType.PARENT if index == 0 else EdgeType.MERGE
            edges.append(CommitEdge.between(parent_id, commit.id, edge_type))
    return edges


class ProjectGraphService:
    """Read-side joins over a ``DataStore``'s repositories."""

    def __init__(self, store: "DataStore"):
        self.store = store

    def project_branches(self, project_id: str) -> List[Branch]:
        return self.store.branches.find_by_project(project_id)

    def commit_membership(
        self, project_id: str, branches: Optional[List[Branch]] = None
    ) -> Callable[[Commit], bool]:
        """
        Predicate selecting the commits of a project.

        A commit belongs to the project when it carries the project's id and
        was recorded against one of the project's branch names.
        """
        if branches is None:
            branches = self.project_branches(project_id)
        names = {branch.name for branch in branches}
        return lambda commit: commit.project_id == project_id and commit.branch_name in names

    def project_commits(
        self, project_id: str, branches: Optional[List[Branch]] = None
    ) -> List[Commit]:
        """Commits of the project, oldest first."""
        return self.store.commits.find_many(
            where=self.commit_membership(project_id, branches),
            sort=[("timestamp", 1)],
        )

    def get_project_graph(self, project_id: str) -> Optional[ProjectGraph]:
        project = self.store.projects.find_by_id(project_id)
        if project is None:
            return None

        branches = self.project_branches(project_id)
        commits = self.project_commits(project_id, branches)

        return ProjectGraph(
            project=project,
            commits=commits,
            branches=branches,
            edges=derive_edges(commits),
            issues=self.store.issues.find_by_project(project_id),
            pull_requests=self.store.pull_requests.find_by_project(project_id),
            tasks=self.store.tasks.find_by_project(project_id),
        )

    def get_project_stats(self, project_id: str) -> Optional[ProjectStats]:
        if not self.store.projects.exists(project_id):
            return None

        branches = self.project_branches(project_id)
        commits = self.project_commits(project_id, branches)
        scope = {"project_id": project_id}

        activity = [commit.timestamp for commit in commits]
        activity.extend(branch.last_activity for branch in branches)

        return ProjectStats(
            total_commits=len(commits),
            total_branches=len(branches),
            total_tasks=self.store.tasks.count(scope),
            total_issues=self.store.issues.count(scope),
            total_pull_requests=self.store.pull_requests.count(scope),
            active_contributors=len({commit.author.email for commit in commits}),
            last_activity=max(activity) if activity else None,
        )
