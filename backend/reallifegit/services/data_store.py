"""
In-memory data store - the single source of truth for RealLifeGit entities.

``DataStore`` owns one repository per entity type and serializes every access
through a re-entrant lock. Mutations build the complete new value (and any
dependent value, such as an advanced branch head), validate all of them, and
only then write them, so a failed call leaves nothing behind.

Reads never raise for a missing id; they return ``None``. Mutations raise
``ValidationError``, ``NotFoundError`` or ``ConsistencyError``.
"""

from __future__ import annotations

import logging
import random
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from reallifegit.config import Settings
from reallifegit.config import settings as default_settings
from reallifegit.dtos.graph import ContributionReport, ProjectGraph, ProjectStats
from reallifegit.dtos.query import (
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
from reallifegit.dtos.requests import (
    CreateBranchRequest,
    CreateCommitRequest,
    CreatePullRequestRequest,
    request_payload,
)
from reallifegit.dtos.store import StoreStats
from reallifegit.entities import (
    BaseEntity,
    Branch,
    Commit,
    Issue,
    IssueComment,
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
from reallifegit.repositories import (
    BaseRepository,
    BranchRepository,
    CommitRepository,
    IssueRepository,
    ProjectRepository,
    PullRequestRepository,
    TaskRepository,
)
from reallifegit.repositories.branch import DEFAULT_BRANCH_SORT
from reallifegit.services.analytics import compute_contribution_data
from reallifegit.services.graph_service import ProjectGraphService
from reallifegit.services.mock_data import IdentifierFactory, MockDataSet, generate_commit_hash
from reallifegit.services.mock_seed import seed_store
from reallifegit.services.store_exceptions import (
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from reallifegit.services.validation import (
    errors_from_pydantic,
    is_valid_id,
    validate_create_branch_request,
    validate_or_raise,
)
from reallifegit.utils.datetime import next_timestamp, utc_now

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseEntity)

# Scalar fields each list may be sorted by
SORTABLE_FIELDS: Dict[str, set] = {
    "project": {"name", "owner", "created_at", "updated_at", "is_private", "star_count", "fork_count"},
    "commit": {"timestamp", "message", "branch_name"},
    "branch": {"name", "created_at", "created_by", "last_activity", "is_default", "is_protected"},
    "task": {"title", "status", "priority", "assignee", "created_at", "updated_at", "due_date"},
    "issue": {
        "number", "title", "status", "priority", "author", "assignee",
        "created_at", "updated_at", "closed_at",
    },
    "pull_request": {
        "number", "title", "status", "author", "from_branch", "to_branch",
        "created_at", "updated_at", "merged_at", "closed_at",
    },
}

# Fields the store assigns; callers cannot set them on create or update
_ASSIGNED_FIELDS = {"id", "created_at", "updated_at", "project_id", "number"}


class DataStore:
    """
    Authoritative CRUD and paginated queries over every entity type.

    Instances are independent: each has its own collections, lock, counters
    and identifier factory. Call ``init()`` to seed sample data according to
    ``Settings.SEED_ON_INIT``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_factory: Optional[IdentifierFactory] = None,
    ):
        self.settings = settings or default_settings
        self.id_factory = id_factory or IdentifierFactory()
        self._lock = threading.RLock()
        self._hash_rng = random.Random()

        self.projects = ProjectRepository()
        self.commits = CommitRepository()
        self.branches = BranchRepository()
        self.tasks = TaskRepository()
        self.issues = IssueRepository()
        self.pull_requests = PullRequestRepository()

        # Highest number handed out per project; never decreases on delete
        self._issue_numbers: Dict[str, int] = {}
        self._pull_request_numbers: Dict[str, int] = {}

        self.graph = ProjectGraphService(self)
        self.initialized = False

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def init(self, seed: Optional[bool] = None) -> "DataStore":
        """Seed sample data (unless disabled) and mark the store ready. Idempotent."""
        with self._lock:
            if self.initialized:
                return self
            should_seed = self.settings.SEED_ON_INIT if seed is None else seed
            if should_seed:
                seed_store(
                    self,
                    project_count=self.settings.SEED_PROJECT_COUNT,
                    seed=self.settings.SEED_RANDOM_SEED,
                )
            self.initialized = True
            stats = self.get_store_stats()
        logger.info("Data store initialized: %s", stats.model_dump())
        return self

    def reset(self) -> StoreStats:
        """Wipe everything and reseed as on first ``init``."""
        with self._lock:
            self.clear_all()
            self.init()
            stats = self.get_store_stats()
        logger.info("Data store reset")
        return stats

    def shutdown(self) -> None:
        with self._lock:
            self.clear_all()
        logger.info("Data store shut down")

    def clear_all(self) -> None:
        with self._lock:
            for repository in self._repositories():
                repository.clear()
            self._issue_numbers.clear()
            self._pull_request_numbers.clear()
            self.id_factory.forget_all()
            self.initialized = False

    def load(self, data: MockDataSet) -> StoreStats:
        """
        Insert a generated data set.

        Every entity is validated before anything is written. Derived edges in
        ``data.edges`` are not stored; they are recomputed from parent links.
        """
        staged = [
            ("project", self.projects, data.projects),
            ("commit", self.commits, data.commits),
            ("branch", self.branches, data.branches),
            ("task", self.tasks, data.tasks),
            ("issue", self.issues, data.issues),
            ("pull_request", self.pull_requests, data.pull_requests),
        ]
        for kind, _, entities in staged:
            for entity in entities:
                validate_or_raise(kind, entity)

        with self._lock:
            commit_ids = {commit.id for commit in data.commits} | {
                commit.id for commit in self.commits.find_all()
            }
            missing = [b.head_commit_id for b in data.branches if b.head_commit_id not in commit_ids]
            if missing:
                raise ConsistencyError(f"Branch heads reference unknown commits: {', '.join(missing)}")

            for _, repository, entities in staged:
                repository.insert_many(entities)
                self.id_factory.reserve(entity.id for entity in entities)

            for project in data.projects:
                self._issue_numbers[project.id] = max(
                    self._issue_numbers.get(project.id, 0), self.issues.max_number(project.id)
                )
                self._pull_request_numbers[project.id] = max(
                    self._pull_request_numbers.get(project.id, 0),
                    self.pull_requests.max_number(project.id),
                )
            stats = self.get_store_stats()

        logger.info(
            "Loaded %d projects, %d commits, %d tasks",
            len(data.projects),
            len(data.commits),
            len(data.tasks),
        )
        return stats

    def get_store_stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                projects=self.projects.count(),
                commits=self.commits.count(),
                branches=self.branches.count(),
                tasks=self.tasks.count(),
                issues=self.issues.count(),
                pull_requests=self.pull_requests.count(),
                edges=self.commits.count_edges(),
            )

    # ========================================================================
    # Shared helpers
    # ========================================================================

    def _repositories(self) -> List[BaseRepository]:
        return [
            self.projects,
            self.commits,
            self.branches,
            self.tasks,
            self.issues,
            self.pull_requests,
        ]

    @staticmethod
    def _normalize(model_cls: Type[E], kind: str, payload: Any) -> Dict[str, Any]:
        """Field-name keyed dict of ``payload``; unknown keys are rejected."""
        if payload is None:
            return {}
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(exclude_unset=True)
        if not isinstance(payload, Mapping):
            raise ValidationError([f"Payload for {kind} must be a mapping"], data_type=kind)
        unknown = model_cls.unknown_keys(payload.keys())
        if unknown:
            raise ValidationError(
                [f"Unknown field for {kind}: {key}" for key in unknown], data_type=kind
            )
        return model_cls.normalize_keys(payload)

    @staticmethod
    def _build(model_cls: Type[E], kind: str, document: Dict[str, Any]) -> E:
        """Run the rule set for ``kind`` and construct the entity."""
        validate_or_raise(kind, document)
        try:
            return model_cls.model_validate(document)
        except PydanticValidationError as exc:
            raise ValidationError(errors_from_pydantic(exc), data_type=kind) from exc

    @staticmethod
    def _parse_options(options: Any, filters_cls: Type[BaseModel]) -> QueryOptions:
        options_cls = QueryOptions[filters_cls]
        if options is None:
            return options_cls()
        if isinstance(options, BaseModel):
            # Nested filter models must stay instances, not dumps
            options = {name: getattr(options, name) for name in options.model_fields_set}
        try:
            return options_cls.model_validate(options)
        except PydanticValidationError as exc:
            raise ValidationError(errors_from_pydantic(exc), data_type="query_options") from exc

    def _sort_spec(
        self,
        kind: str,
        model_cls: Type[BaseEntity],
        options: QueryOptions,
        default_field: str,
    ) -> List[tuple]:
        direction = -1 if options.sort_order == "desc" else 1
        if options.sort_by is None:
            if kind == "branch":
                return list(DEFAULT_BRANCH_SORT)
            return [(default_field, direction)]

        field = model_cls.field_lookup().get(options.sort_by)
        if field not in SORTABLE_FIELDS[kind]:
            raise ValidationError(
                [f"Unknown sort field for {kind}: {options.sort_by}"], data_type="query_options"
            )
        return [(field, direction)]

    def _paginate(
        self,
        kind: str,
        repository: BaseRepository[E],
        options: QueryOptions,
        default_field: str = "updated_at",
        query: Optional[Dict[str, Any]] = None,
        where: Optional[Callable[[Any], bool]] = None,
    ) -> Page[E]:
        limit = min(options.limit or self.settings.DEFAULT_PAGE_LIMIT, self.settings.MAX_PAGE_LIMIT)
        offset = options.offset
        sort = self._sort_spec(kind, repository.model_class, options, default_field)

        items, total = repository.paginate(query, where=where, sort=sort, skip=offset, limit=limit)
        return Page[repository.model_class](
            data=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_next=offset + limit < total,
                has_prev=offset > 0,
            ),
        )

    @staticmethod
    def _filter_query(options: QueryOptions, scope: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = dict(scope or {})
        if options.filters is not None:
            query.update(options.filters.model_dump(exclude_none=True))
        return query

    def _require_project(self, project_id: str) -> Project:
        project = self.projects.find_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def _update(
        self,
        kind: str,
        label: str,
        repository: BaseRepository[E],
        entity_id: str,
        partial: Any,
        adjust: Optional[Callable[[E, Dict[str, Any], Dict[str, Any], datetime], None]] = None,
    ) -> E:
        with self._lock:
            existing = repository.find_by_id(entity_id)
            if existing is None:
                raise NotFoundError(label, entity_id)

            changes = self._normalize(repository.model_class, kind, partial)
            for field in _ASSIGNED_FIELDS:
                changes.pop(field, None)
            stamp = next_timestamp(existing.updated_at)

            document = {**existing.model_dump(), **changes, "updated_at": stamp}
            if adjust is not None:
                adjust(existing, document, changes, stamp)

            entity = self._build(repository.model_class, kind, document)
            repository.replace_one(entity)

        logger.debug(
            "Updated %s %s",
            kind,
            entity_id,
            extra={"entity_id": entity_id, "operation": f"update_{kind}"},
        )
        return entity

    def _delete(self, kind: str, repository: BaseRepository, entity_id: str) -> bool:
        with self._lock:
            removed = repository.delete_one(entity_id)
        if removed:
            logger.debug(
                "Deleted %s %s",
                kind,
                entity_id,
                extra={"entity_id": entity_id, "operation": f"delete_{kind}"},
            )
        return removed

    def _next_number(self, counters: Dict[str, int], repository: Any, project_id: str) -> int:
        current = counters.get(project_id)
        if current is None:
            current = repository.max_number(project_id)
        return current + 1

    # ========================================================================
    # Projects
    # ========================================================================

    def list_projects(self, options: Any = None) -> Page[Project]:
        options = self._parse_options(options, ProjectFilters)
        filters: Optional[ProjectFilters] = options.filters
        query: Dict[str, Any] = {}
        where = None
        if filters is not None:
            if filters.owner is not None:
                query["owner"] = filters.owner
            if filters.is_private is not None:
                query["is_private"] = filters.is_private
            if filters.search:
                needle = filters.search.lower()

                def where(project: Project) -> bool:
                    return needle in project.name.lower() or needle in (project.description or "").lower()

        with self._lock:
            return self._paginate("project", self.projects, options, query=query, where=where)

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._lock:
            return self.projects.find_by_id(project_id)

    def create_project(self, payload: Any) -> Project:
        data = self._normalize(Project, "project", payload)
        for field in _ASSIGNED_FIELDS:
            data.pop(field, None)

        now = utc_now()
        document = {
            "description": "",
            "is_private": False,
            "default_branch": "main",
            "star_count": 0,
            "fork_count": 0,
            **data,
            "id": self.id_factory.generate_id("proj"),
            "created_at": now,
            "updated_at": now,
        }
        project = self._build(Project, "project", document)
        with self._lock:
            self.projects.insert_one(project)

        logger.debug(
            "Created project %s",
            project.id,
            extra={"project_id": project.id, "entity_id": project.id, "operation": "create_project"},
        )
        return project

    def update_project(self, project_id: str, partial: Any) -> Project:
        return self._update("project", "Project", self.projects, project_id, partial)

    def delete_project(self, project_id: str) -> bool:
        """Remove the project only; its branches, commits and work items stay."""
        return self._delete("project", self.projects, project_id)

    def get_project_graph(self, project_id: str) -> Optional[ProjectGraph]:
        with self._lock:
            return self.graph.get_project_graph(project_id)

    def get_project_stats(self, project_id: str) -> Optional[ProjectStats]:
        with self._lock:
            return self.graph.get_project_stats(project_id)

    def get_contribution_data(
        self, project_id: str, user_id: Optional[str] = None
    ) -> Optional[ContributionReport]:
        with self._lock:
            if not self.projects.exists(project_id):
                return None
            commits = self.graph.project_commits(project_id)
        return compute_contribution_data(
            commits,
            window_days=self.settings.CONTRIBUTION_WINDOW_DAYS,
            user_id=user_id,
        )

    # ========================================================================
    # Commits
    # ========================================================================

    def list_commits(self, project_id: str, options: Any = None) -> Page[Commit]:
        options = self._parse_options(options, CommitFilters)
        filters: Optional[CommitFilters] = options.filters

        with self._lock:
            belongs = self.graph.commit_membership(project_id)
            author = filters.author.lower() if filters is not None and filters.author else None
            branch = filters.branch if filters is not None else None

            def where(commit: Commit) -> bool:
                if not belongs(commit):
                    return False
                if branch and commit.branch_name != branch:
                    return False
                if author and author not in commit.author.name.lower() and author not in commit.author.email.lower():
                    return False
                return True

            return self._paginate("commit", self.commits, options, default_field="timestamp", where=where)

    def get_commit(self, commit_id: str) -> Optional[Commit]:
        with self._lock:
            return self.commits.find_by_id(commit_id)

    def create_commit(self, project_id: str, request: Any) -> Commit:
        """
        Record a commit and advance the branch it was made on.

        The new commit's parent is the head of the project's branch named
        ``request.branch_name``; with no such branch it is a root commit and no
        branch is created. The commit and the moved head are written together.
        """
        payload = request_payload(request, CreateCommitRequest)
        validate_or_raise("create_commit_request", payload)
        try:
            changes = [TaskChange.model_validate(change) for change in payload["task_changes"]]
        except PydanticValidationError as exc:
            raise ValidationError(errors_from_pydantic(exc), data_type="create_commit_request") from exc

        with self._lock:
            self._require_project(project_id)
            branch = self.branches.find_by_project_and_name(project_id, payload["branch_name"])

            parent_ids: List[str] = []
            timestamp = utc_now()
            if branch is not None:
                parent_ids = [branch.head_commit_id]
                head = self.commits.find_by_id(branch.head_commit_id)
                timestamp = next_timestamp(head.timestamp if head else branch.last_activity)

            commit_hash = generate_commit_hash(self._hash_rng)
            commit = self._build(
                Commit,
                "commit",
                {
                    "id": self.id_factory.generate_id("commit"),
                    "hash": commit_hash,
                    "short_hash": commit_hash[:7],
                    "message": payload["message"],
                    "author": payload["author"],
                    "timestamp": timestamp,
                    "parent_ids": parent_ids,
                    "branch_name": payload["branch_name"],
                    "project_id": project_id,
                    "changed_tasks": [change.model_dump() for change in changes],
                    "stats": compute_commit_stats(changes).model_dump(),
                },
            )

            moved_branch = None
            if branch is not None:
                moved_branch = self._build(
                    Branch,
                    "branch",
                    {**branch.model_dump(), "head_commit_id": commit.id, "last_activity": timestamp},
                )

            self.commits.insert_one(commit)
            if moved_branch is not None:
                self.branches.replace_one(moved_branch)

        logger.debug(
            "Created commit %s on %s",
            commit.short_hash,
            commit.branch_name,
            extra={"project_id": project_id, "entity_id": commit.id, "operation": "create_commit"},
        )
        return commit

    # ========================================================================
    # Branches
    # ========================================================================

    def list_branches(self, project_id: str, options: Any = None) -> Page[Branch]:
        options = self._parse_options(options, BranchFilters)
        with self._lock:
            return self._paginate(
                "branch",
                self.branches,
                options,
                default_field="last_activity",
                query=self._filter_query(options, {"project_id": project_id}),
            )

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        with self._lock:
            return self.branches.find_by_id(branch_id)

    def create_branch(self, project_id: str, request: Any) -> Branch:
        """
        Create a branch whose head is an existing commit.

        Request rules, the existence of ``from_commit_id`` and name uniqueness
        within the project are reported together. With
        ``ENFORCE_BRANCH_PROJECT_SCOPE`` the commit must also belong to the
        project.
        """
        payload = request_payload(request, CreateBranchRequest)

        with self._lock:
            self._require_project(project_id)

            errors = validate_create_branch_request(payload).errors
            from_commit_id = payload.get("from_commit_id")
            from_commit = self.commits.find_by_id(from_commit_id) if is_valid_id(from_commit_id) else None
            if is_valid_id(from_commit_id) and from_commit is None:
                errors.append(f"From commit does not exist: {from_commit_id}")
            name = payload.get("name")
            if isinstance(name, str) and self.branches.find_by_project_and_name(project_id, name):
                errors.append(f"Branch already exists in project: {name}")
            if errors:
                raise ValidationError(errors, data_type="create_branch_request")

            if self.settings.ENFORCE_BRANCH_PROJECT_SCOPE and from_commit.project_id != project_id:
                raise ConsistencyError(
                    f"Commit {from_commit_id} belongs to project {from_commit.project_id}, not {project_id}"
                )

            now = utc_now()
            branch = self._build(
                Branch,
                "branch",
                {
                    "id": self.id_factory.generate_id("branch"),
                    "name": name,
                    "project_id": project_id,
                    "head_commit_id": from_commit_id,
                    "created_at": now,
                    "created_by": payload.get("created_by") or self.settings.CURRENT_USER,
                    "is_default": False,
                    "is_protected": False,
                    "last_activity": now,
                },
            )
            self.branches.insert_one(branch)

        logger.debug(
            "Created branch %s at %s",
            branch.name,
            from_commit_id,
            extra={"project_id": project_id, "entity_id": branch.id, "operation": "create_branch"},
        )
        return branch

    def update_branch(self, branch_id: str, partial: Any) -> Branch:
        """
        Move, rename or flag a branch.

        The head must be an existing commit, names stay unique per project and
        a project has at most one default branch, named after the project's
        ``default_branch``.
        """
        with self._lock:
            existing = self.branches.find_by_id(branch_id)
            if existing is None:
                raise NotFoundError("Branch", branch_id)

            changes = self._normalize(Branch, "branch", partial)
            for field in ("id", "project_id", "created_at"):
                changes.pop(field, None)
            document = {**existing.model_dump(), **changes}

            errors = []
            head_id = document.get("head_commit_id")
            if is_valid_id(head_id) and not self.commits.exists(head_id):
                errors.append(f"Branch head commit does not exist: {head_id}")
            name = document.get("name")
            clash = (
                self.branches.find_by_project_and_name(existing.project_id, name)
                if isinstance(name, str)
                else None
            )
            if clash is not None and clash.id != existing.id:
                errors.append(f"Branch already exists in project: {name}")
            if errors:
                raise ValidationError(errors, data_type="branch")

            if document.get("is_default") is True:
                project = self.projects.find_by_id(existing.project_id)
                if project is not None and name != project.default_branch:
                    raise ConsistencyError(
                        f"Default branch of project {project.id} must be named "
                        f"{project.default_branch}, not {name}"
                    )
                current_default = self.branches.find_default(existing.project_id)
                if current_default is not None and current_default.id != existing.id:
                    raise ConsistencyError(
                        f"Project {existing.project_id} already has a default branch: "
                        f"{current_default.name}"
                    )

            branch = self._build(Branch, "branch", document)
            self.branches.replace_one(branch)

        logger.debug(
            "Updated branch %s",
            branch_id,
            extra={"project_id": branch.project_id, "entity_id": branch_id, "operation": "update_branch"},
        )
        return branch

    # ========================================================================
    # Tasks
    # ========================================================================

    def list_tasks(self, project_id: Optional[str] = None, options: Any = None) -> Page[Task]:
        options = self._parse_options(options, TaskFilters)
        scope = {"project_id": project_id} if project_id else None
        with self._lock:
            return self._paginate("task", self.tasks, options, query=self._filter_query(options, scope))

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self.tasks.find_by_id(task_id)

    def create_task(self, project_id: str, payload: Any) -> Task:
        data = self._normalize(Task, "task", payload)
        for field in _ASSIGNED_FIELDS:
            data.pop(field, None)

        with self._lock:
            self._require_project(project_id)
            now = utc_now()
            task = self._build(
                Task,
                "task",
                {
                    "status": TaskStatus.TODO.value,
                    "priority": TaskPriority.MEDIUM.value,
                    "labels": [],
                    "metadata": {},
                    **data,
                    "id": self.id_factory.generate_id("task"),
                    "project_id": project_id,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self.tasks.insert_one(task)

        logger.debug(
            "Created task %s",
            task.id,
            extra={"project_id": project_id, "entity_id": task.id, "operation": "create_task"},
        )
        return task

    def update_task(self, task_id: str, partial: Any) -> Task:
        return self._update("task", "Task", self.tasks, task_id, partial)

    def delete_task(self, task_id: str) -> bool:
        return self._delete("task", self.tasks, task_id)

    # ========================================================================
    # Issues
    # ========================================================================

    def list_issues(self, project_id: Optional[str] = None, options: Any = None) -> Page[Issue]:
        options = self._parse_options(options, IssueFilters)
        scope = {"project_id": project_id} if project_id else None
        with self._lock:
            return self._paginate("issue", self.issues, options, query=self._filter_query(options, scope))

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        with self._lock:
            return self.issues.find_by_id(issue_id)

    @staticmethod
    def _stamp_issue_status(
        existing: Issue, document: Dict[str, Any], changes: Dict[str, Any], stamp: datetime
    ) -> None:
        status = getattr(document.get("status"), "value", document.get("status"))
        if status == IssueStatus.CLOSED.value:
            if document.get("closed_at") is None:
                document["closed_at"] = stamp
        elif "closed_at" not in changes:
            document["closed_at"] = None

    def create_issue(self, project_id: str, payload: Any) -> Issue:
        """Open an issue numbered after the project's highest issue number."""
        data = self._normalize(Issue, "issue", payload)
        for field in _ASSIGNED_FIELDS:
            data.pop(field, None)

        with self._lock:
            self._require_project(project_id)
            number = self._next_number(self._issue_numbers, self.issues, project_id)
            now = utc_now()
            document = {
                "status": IssueStatus.OPEN.value,
                "priority": IssuePriority.MEDIUM.value,
                "author": self.settings.CURRENT_USER,
                "labels": [],
                "comments": [],
                **data,
                "id": self.id_factory.generate_id("issue"),
                "number": number,
                "project_id": project_id,
                "created_at": now,
                "updated_at": now,
            }
            self._stamp_issue_status(None, document, data, now)
            issue = self._build(Issue, "issue", document)

            self.issues.insert_one(issue)
            self._issue_numbers[project_id] = number

        logger.debug(
            "Created issue #%d",
            issue.number,
            extra={"project_id": project_id, "entity_id": issue.id, "operation": "create_issue"},
        )
        return issue

    def update_issue(self, issue_id: str, partial: Any) -> Issue:
        """Closing stamps ``closed_at`` unless given; reopening clears it."""
        return self._update(
            "issue", "Issue", self.issues, issue_id, partial, adjust=self._stamp_issue_status
        )

    def delete_issue(self, issue_id: str) -> bool:
        return self._delete("issue", self.issues, issue_id)

    def add_issue_comment(self, issue_id: str, content: str, author: Optional[str] = None) -> Issue:
        if not isinstance(content, str) or not content.strip():
            raise ValidationError(
                ["Comment content is required and must be non-empty"], data_type="issue_comment"
            )

        with self._lock:
            existing = self.issues.find_by_id(issue_id)
            if existing is None:
                raise NotFoundError("Issue", issue_id)

            stamp = next_timestamp(existing.updated_at)
            comment = IssueComment(
                id=self.id_factory.generate_id("comment"),
                content=content,
                author=author or self.settings.CURRENT_USER,
                created_at=stamp,
            )
            issue = self._build(
                Issue,
                "issue",
                {
                    **existing.model_dump(),
                    "comments": [*existing.model_dump()["comments"], comment.model_dump()],
                    "updated_at": stamp,
                },
            )
            self.issues.replace_one(issue)

        logger.debug(
            "Commented on issue #%d",
            issue.number,
            extra={"project_id": issue.project_id, "entity_id": issue_id, "operation": "add_issue_comment"},
        )
        return issue

    # ========================================================================
    # Pull requests
    # ========================================================================

    def list_pull_requests(
        self, project_id: Optional[str] = None, options: Any = None
    ) -> Page[PullRequest]:
        options = self._parse_options(options, PullRequestFilters)
        scope = {"project_id": project_id} if project_id else None
        with self._lock:
            return self._paginate(
                "pull_request",
                self.pull_requests,
                options,
                query=self._filter_query(options, scope),
            )

    def get_pull_request(self, pull_request_id: str) -> Optional[PullRequest]:
        with self._lock:
            return self.pull_requests.find_by_id(pull_request_id)

    def create_pull_request(self, project_id: str, request: Any) -> PullRequest:
        payload = request_payload(request, CreatePullRequestRequest)
        validate_or_raise("create_pull_request_request", payload)

        with self._lock:
            self._require_project(project_id)
            number = self._next_number(self._pull_request_numbers, self.pull_requests, project_id)
            now = utc_now()
            pull_request = self._build(
                PullRequest,
                "pull_request",
                {
                    "id": self.id_factory.generate_id("pr"),
                    "number": number,
                    "title": payload["title"],
                    "description": payload["description"],
                    "from_branch": payload["from_branch"],
                    "to_branch": payload["to_branch"],
                    "status": PullRequestStatus.OPEN.value,
                    "author": payload.get("author") or self.settings.CURRENT_USER,
                    "reviewers": list(payload.get("reviewers") or []),
                    "created_at": now,
                    "updated_at": now,
                    "conflicts": [],
                    "project_id": project_id,
                },
            )
            self.pull_requests.insert_one(pull_request)
            self._pull_request_numbers[project_id] = number

        logger.debug(
            "Opened pull request #%d %s -> %s",
            pull_request.number,
            pull_request.from_branch,
            pull_request.to_branch,
            extra={"project_id": project_id, "entity_id": pull_request.id, "operation": "create_pull_request"},
        )
        return pull_request

    @staticmethod
    def _stamp_pull_request_status(
        existing: PullRequest, document: Dict[str, Any], changes: Dict[str, Any], stamp: datetime
    ) -> None:
        status = getattr(document.get("status"), "value", document.get("status"))
        for terminal, field in (
            (PullRequestStatus.MERGED.value, "merged_at"),
            (PullRequestStatus.CLOSED.value, "closed_at"),
        ):
            if status == terminal:
                if document.get(field) is None:
                    document[field] = stamp
            elif field not in changes:
                document[field] = None

    def update_pull_request(self, pull_request_id: str, partial: Any) -> PullRequest:
        """Merging or closing stamps ``merged_at``/``closed_at`` unless given."""
        return self._update(
            "pull_request",
            "PullRequest",
            self.pull_requests,
            pull_request_id,
            partial,
            adjust=self._stamp_pull_request_status,
        )

    def delete_pull_request(self, pull_request_id: str) -> bool:
        return self._delete("pull_request", self.pull_requests, pull_request_id)
