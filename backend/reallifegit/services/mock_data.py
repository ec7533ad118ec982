"""
Sample data generation for development and tests.

``MockDataGenerator`` builds internally consistent projects: every branch head
is a generated commit, every parent id points at an earlier commit of the same
chain and every edge connects two generated commits. Content randomness comes
from the ``rng`` passed in, so a seeded ``random.Random`` reproduces the same
content. Identifiers come from an ``IdentifierFactory`` and are unique within
the process.
"""

from __future__ import annotations

import logging
import random
import string
import threading
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from reallifegit.entities import (
    Branch,
    ChangeType,
    Commit,
    CommitAuthor,
    CommitEdge,
    Issue,
    IssuePriority,
    IssueStatus,
    Project,
    PullRequest,
    PullRequestStatus,
    Task,
    TaskChange,
    TaskPriority,
    TaskStatus,
    compute_commit_stats,
)
from reallifegit.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 9
HEX_DIGITS = "0123456789abcdef"

COMMITS_PER_PROJECT = 8
TASKS_PER_PROJECT = 10
ISSUES_PER_PROJECT = 5
PULL_REQUESTS_PER_PROJECT = 3
MAIN_BRANCH = "main"
FEATURE_BRANCH = "feature/enhancements"

SAMPLE_USERS: List[CommitAuthor] = [
    CommitAuthor(
        name="John Doe",
        email="john@example.com",
        avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=john",
    ),
    CommitAuthor(
        name="Jane Smith",
        email="jane@example.com",
        avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=jane",
    ),
    CommitAuthor(
        name="Bob Wilson",
        email="bob@example.com",
        avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=bob",
    ),
    CommitAuthor(
        name="Alice Johnson",
        email="alice@example.com",
        avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=alice",
    ),
    CommitAuthor(
        name="Charlie Brown",
        email="charlie@example.com",
        avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=charlie",
    ),
]

SAMPLE_PROJECT_NAMES = [
    "Personal Productivity System",
    "Home Improvement Tracker",
    "Fitness Journey Planner",
    "Learning Goals Manager",
    "Creative Projects Hub",
    "Financial Planning Assistant",
    "Travel Adventure Organizer",
    "Recipe Collection Manager",
    "Garden Planning System",
    "Side Hustle Tracker",
]

SAMPLE_TASK_TITLES = [
    "Complete morning workout routine",
    "Plan weekly meals and groceries",
    "Practice guitar for 30 minutes",
    "Read one chapter of current book",
    "Organize workspace and declutter",
    "Water indoor plants",
    "Practice meditation or mindfulness",
    "Write in journal for 10 minutes",
    "Review and update budget",
    "Call family or close friend",
    "Learn new skill for 1 hour",
    "Prepare healthy lunch",
    "Take a 20-minute walk",
    "Review daily goals and priorities",
    "Clean and organize one room",
]

SAMPLE_TASK_DESCRIPTIONS = [
    "This task is part of establishing better daily routines",
    "Important for maintaining health and wellness goals",
    "Contributes to long-term personal development",
    "Helps maintain work-life balance",
    "Essential for achieving monthly objectives",
    "Supports overall productivity and organization",
    "Part of building positive habits and consistency",
    "Contributes to mental health and well-being",
]

SAMPLE_COMMIT_MESSAGES = [
    "Add new task for daily routine",
    "Update task status and progress notes",
    "Reorganize task priorities",
    "Complete weekly review and planning",
    "Fix scheduling conflicts",
    "Add deadline reminders",
    "Update task descriptions with more details",
    "Mark tasks as completed",
    "Create new task category",
    "Merge weekly planning updates",
]

SAMPLE_LABELS = [
    "urgent", "health", "fitness", "learning", "work", "personal",
    "routine", "goals", "planning", "review", "creative", "social",
    "finance", "home", "travel", "hobby", "skill-building",
]

SAMPLE_ISSUE_TITLES = [
    "Task scheduling conflicts need resolution",
    "Need better progress tracking",
    "Improve task categorization system",
    "Add deadline reminder notifications",
    "Export functionality for task reports",
    "Mobile app support needed",
    "Integration with calendar apps",
    "Bulk task operations support",
]

SAMPLE_PULL_REQUEST_TITLES = [
    "Add new task management features",
    "Improve user interface responsiveness",
    "Fix bug in task scheduling",
    "Update documentation and examples",
    "Enhance performance optimization",
    "Add new reporting capabilities",
]


def username(author: CommitAuthor) -> str:
    """Local part of the author's email, used as the user handle."""
    return author.email.split("@")[0]


class IdentifierFactory:
    """
    Issues ``{prefix}-{suffix}`` identifiers, unique for the factory's lifetime.

    The suffix is 9 base36 characters. Issued ids are remembered and a
    colliding draw is redrawn. Not a security-grade identifier.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._issued: set[str] = set()
        self._lock = threading.Lock()

    def generate_id(self, prefix: str) -> str:
        with self._lock:
            while True:
                suffix = "".join(self._rng.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
                candidate = f"{prefix}-{suffix}"
                if candidate not in self._issued:
                    self._issued.add(candidate)
                    return candidate

    def reserve(self, ids: Iterable[str]) -> None:
        """Mark ids created elsewhere as taken."""
        with self._lock:
            self._issued.update(ids)

    def forget_all(self) -> None:
        with self._lock:
            self._issued.clear()

    def __len__(self) -> int:
        return len(self._issued)


def generate_commit_hash(rng: Optional[random.Random] = None) -> str:
    """40 lowercase hex characters."""
    rng = rng or random
    return "".join(rng.choice(HEX_DIGITS) for _ in range(40))


class GeneratedProject(BaseModel):
    project: Project
    branches: List[Branch]
    commits: List[Commit]
    tasks: List[Task]
    issues: List[Issue]
    pull_requests: List[PullRequest]
    edges: List[CommitEdge]


class MockDataSet(BaseModel):
    projects: List[Project] = []
    branches: List[Branch] = []
    commits: List[Commit] = []
    tasks: List[Task] = []
    issues: List[Issue] = []
    pull_requests: List[PullRequest] = []
    edges: List[CommitEdge] = []
    users: List[CommitAuthor] = []


class MockDataGenerator:
    """Builds sample projects with consistent commit history."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        id_factory: Optional[IdentifierFactory] = None,
        now: Optional[datetime] = None,
    ):
        self.rng = rng or random.Random()
        self.id_factory = id_factory or IdentifierFactory()
        self.now = now or utc_now()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _random_date(self, start: datetime, end: datetime) -> datetime:
        if end <= start:
            return start
        return start + (end - start) * self.rng.random()

    def _pick_user(self) -> CommitAuthor:
        return self.rng.choice(SAMPLE_USERS)

    def _commit_timeline(self, count: int) -> List[datetime]:
        """Strictly increasing timestamps ending well before ``now``."""
        current = self._random_date(self.now - timedelta(days=180), self.now - timedelta(days=30))
        timeline = [current]
        for _ in range(count - 1):
            current = current + timedelta(hours=self.rng.randint(1, 72))
            timeline.append(current)
        return timeline

    # ------------------------------------------------------------------
    # Single entities
    # ------------------------------------------------------------------

    def generate_project(self, created_before: Optional[datetime] = None) -> Project:
        name = self.rng.choice(SAMPLE_PROJECT_NAMES)
        created_before = created_before or self.now
        created_at = self._random_date(created_before - timedelta(days=365), created_before)
        return Project(
            id=self.id_factory.generate_id("proj"),
            name=name,
            description=f"A comprehensive system for managing {name.lower()}",
            owner=username(self._pick_user()),
            created_at=created_at,
            updated_at=self._random_date(created_at, self.now),
            is_private=self.rng.random() > 0.7,
            default_branch=MAIN_BRANCH,
            star_count=self.rng.randint(0, 49),
            fork_count=self.rng.randint(0, 9),
        )

    def generate_task(self, project_id: str, branch_id: Optional[str] = None) -> Task:
        created_at = self._random_date(self.now - timedelta(days=180), self.now)
        label_count = self.rng.randint(1, 4)
        labels = [self.rng.choice(SAMPLE_LABELS) for _ in range(label_count)]
        due_date = None
        if self.rng.random() > 0.3:
            due_date = self._random_date(self.now, self.now + timedelta(days=90))

        return Task(
            id=self.id_factory.generate_id("task"),
            title=self.rng.choice(SAMPLE_TASK_TITLES),
            description=self.rng.choice(SAMPLE_TASK_DESCRIPTIONS),
            status=self.rng.choice(list(TaskStatus)),
            priority=self.rng.choice(list(TaskPriority)),
            assignee=username(self._pick_user()),
            created_at=created_at,
            updated_at=self._random_date(created_at, self.now),
            due_date=due_date,
            labels=labels,
            metadata={
                "category": labels[0] if labels else "general",
                "difficulty": self.rng.choice(["easy", "medium", "hard"]),
                "time_estimate": f"{self.rng.randint(15, 134)} minutes",
            },
            project_id=project_id,
            branch_id=branch_id,
        )

    def generate_task_change(self, task: Task) -> TaskChange:
        change_type = self.rng.choice(list(ChangeType))
        return TaskChange(
            task_id=task.id,
            change_type=change_type,
            old_values={} if change_type == ChangeType.CREATED else {"status": TaskStatus.TODO.value},
            new_values=(
                {}
                if change_type == ChangeType.DELETED
                else {"status": TaskStatus.IN_PROGRESS.value, "title": task.title}
            ),
            notes=f"{change_type.value} task via commit",
        )

    def generate_commit(
        self,
        project_id: str,
        branch_name: str,
        tasks: Sequence[Task],
        parent_ids: Sequence[str] = (),
        timestamp: Optional[datetime] = None,
    ) -> Commit:
        """Commit changing 1-3 of ``tasks``, which must be tasks of the data set."""
        if not tasks:
            raise ValueError("generate_commit needs at least one task to change")
        commit_hash = generate_commit_hash(self.rng)
        changes = [
            self.generate_task_change(self.rng.choice(tasks))
            for _ in range(self.rng.randint(1, 3))
        ]
        return Commit(
            id=self.id_factory.generate_id("commit"),
            hash=commit_hash,
            short_hash=commit_hash[:7],
            message=self.rng.choice(SAMPLE_COMMIT_MESSAGES),
            author=self._pick_user(),
            timestamp=timestamp or self._random_date(self.now - timedelta(days=180), self.now),
            parent_ids=list(parent_ids),
            branch_name=branch_name,
            project_id=project_id,
            changed_tasks=changes,
            stats=compute_commit_stats(changes),
        )

    def generate_branch(
        self,
        project_id: str,
        head_commit: Commit,
        name: str,
        created_at: Optional[datetime] = None,
        is_default: bool = False,
        is_protected: bool = False,
    ) -> Branch:
        created_at = created_at or head_commit.timestamp
        return Branch(
            id=self.id_factory.generate_id("branch"),
            name=name,
            project_id=project_id,
            head_commit_id=head_commit.id,
            created_at=created_at,
            created_by=username(self._pick_user()),
            is_default=is_default,
            is_protected=is_protected,
            last_activity=max(created_at, head_commit.timestamp),
        )

    def generate_issue(self, project_id: str, number: int) -> Issue:
        title = self.rng.choice(SAMPLE_ISSUE_TITLES)
        status = self.rng.choice(list(IssueStatus))
        created_at = self._random_date(self.now - timedelta(days=180), self.now)
        updated_at = self._random_date(created_at, self.now)
        return Issue(
            id=self.id_factory.generate_id("issue"),
            number=number,
            title=title,
            description=(
                f"Detailed description for {title.lower()}. "
                "This issue needs attention and proper resolution."
            ),
            status=status,
            priority=self.rng.choice(list(IssuePriority)),
            author=username(self._pick_user()),
            assignee=username(self._pick_user()),
            created_at=created_at,
            updated_at=updated_at,
            closed_at=updated_at if status == IssueStatus.CLOSED else None,
            labels=SAMPLE_LABELS[: self.rng.randint(1, 3)],
            comments=[],
            project_id=project_id,
        )

    def generate_pull_request(
        self,
        project_id: str,
        number: int,
        from_branch: str = FEATURE_BRANCH,
        to_branch: str = MAIN_BRANCH,
        merge_commit_id: Optional[str] = None,
    ) -> PullRequest:
        title = self.rng.choice(SAMPLE_PULL_REQUEST_TITLES)
        status = self.rng.choice(list(PullRequestStatus))
        created_at = self._random_date(self.now - timedelta(days=180), self.now)
        updated_at = self._random_date(created_at, self.now)
        merged = status == PullRequestStatus.MERGED
        return PullRequest(
            id=self.id_factory.generate_id("pr"),
            number=number,
            title=title,
            description=(
                f"## Summary\n\n{title}\n\n## Changes\n"
                "- Feature implementation\n- Test coverage\n- Documentation updates"
            ),
            from_branch=from_branch,
            to_branch=to_branch,
            status=status,
            author=username(self._pick_user()),
            reviewers=[username(user) for user in SAMPLE_USERS[:2]],
            created_at=created_at,
            updated_at=updated_at,
            merged_at=updated_at if merged else None,
            closed_at=updated_at if status == PullRequestStatus.CLOSED else None,
            merge_commit_id=merge_commit_id if merged else None,
            conflicts=[],
            project_id=project_id,
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @staticmethod
    def generate_commit_edges(commits: Sequence[Commit]) -> List[CommitEdge]:
        """Parent edges for consecutive pairs of a linear history."""
        return [
            CommitEdge.between(parent.id, child.id)
            for parent, child in zip(commits, commits[1:])
        ]

    def generate_complete_project(self) -> GeneratedProject:
        """
        One project with a linear history on ``main``.

        - 10 tasks
        - 8 commits, each after the first has the previous one as sole parent
        - ``main`` (default, protected) at the last commit and
          ``feature/enhancements`` at the second-to-last
        - 5 issues and 3 pull requests, numbered from 1
        """
        timeline = self._commit_timeline(COMMITS_PER_PROJECT)
        project = self.generate_project(created_before=timeline[0])
        project = project.model_copy(update={"updated_at": max(project.updated_at, timeline[-1])})

        tasks = [self.generate_task(project.id) for _ in range(TASKS_PER_PROJECT)]

        commits: List[Commit] = []
        for timestamp in timeline:
            parent_ids = [commits[-1].id] if commits else []
            commits.append(
                self.generate_commit(project.id, MAIN_BRANCH, tasks, parent_ids, timestamp=timestamp)
            )

        main_branch = self.generate_branch(
            project.id,
            commits[-1],
            MAIN_BRANCH,
            created_at=commits[0].timestamp,
            is_default=True,
            is_protected=True,
        )
        feature_branch = self.generate_branch(
            project.id,
            commits[-2],
            FEATURE_BRANCH,
            created_at=self._random_date(commits[0].timestamp, commits[-2].timestamp),
        )

        issues = [self.generate_issue(project.id, number) for number in range(1, ISSUES_PER_PROJECT + 1)]
        pull_requests = [
            self.generate_pull_request(project.id, number, merge_commit_id=commits[-1].id)
            for number in range(1, PULL_REQUESTS_PER_PROJECT + 1)
        ]

        return GeneratedProject(
            project=project,
            branches=[main_branch, feature_branch],
            commits=commits,
            tasks=tasks,
            issues=issues,
            pull_requests=pull_requests,
            edges=self.generate_commit_edges(commits),
        )

    def generate_mock_data_set(self, project_count: int = 2) -> MockDataSet:
        data = MockDataSet(users=list(SAMPLE_USERS))
        for _ in range(project_count):
            generated = self.generate_complete_project()
            data.projects.append(generated.project)
            data.branches.extend(generated.branches)
            data.commits.extend(generated.commits)
            data.tasks.extend(generated.tasks)
            data.issues.extend(generated.issues)
            data.pull_requests.extend(generated.pull_requests)
            data.edges.extend(generated.edges)

        logger.debug(
            "Generated mock data set: %d projects, %d commits",
            len(data.projects),
            len(data.commits),
        )
        return data
