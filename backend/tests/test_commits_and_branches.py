import threading
import unittest
from unittest.mock import patch

from reallifegit.config import Settings
from reallifegit.dtos.requests import CreateBranchRequest, CreateCommitRequest
from reallifegit.entities import CommitAuthor, TaskChange
from reallifegit.services.data_store import DataStore
from reallifegit.services.store_exceptions import (
    ConsistencyError,
    NotFoundError,
    ValidationError,
)

AUTHOR = {"name": "Jane Smith", "email": "jane@example.com"}


def _store(**overrides) -> DataStore:
    overrides.setdefault("SEED_ON_INIT", False)
    return DataStore(settings=Settings(**overrides)).init()


def _commit_request(message="Update task status", branch="main", changes=None, author=None):
    return {
        "message": message,
        "branch_name": branch,
        "task_changes": changes or [],
        "author": author or AUTHOR,
    }


class TestCreateCommit(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})
        self.root = self.store.create_commit(self.project.id, _commit_request("Initial commit"))

    def test_commit_without_branch_is_root(self):
        self.assertEqual(self.root.parent_ids, [])
        self.assertTrue(self.root.is_root)
        self.assertEqual(self.root.project_id, self.project.id)
        self.assertEqual(self.root.short_hash, self.root.hash[:7])
        self.assertRegex(self.root.hash, r"^[0-9a-f]{40}$")
        self.assertEqual(self.store.get_store_stats().branches, 0)

    def test_commit_advances_branch(self):
        branch = self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})

        commit = self.store.create_commit(self.project.id, _commit_request())

        self.assertEqual(commit.parent_ids, [self.root.id])
        self.assertGreater(commit.timestamp, self.root.timestamp)
        moved = self.store.get_branch(branch.id)
        self.assertEqual(moved.head_commit_id, commit.id)
        self.assertEqual(moved.last_activity, commit.timestamp)

    def test_request_model_and_stats(self):
        request = CreateCommitRequest(
            message="Plan meals",
            branch_name="main",
            task_changes=[
                TaskChange(task_id="task-1", change_type="created"),
                TaskChange(task_id="task-2", change_type="deleted"),
                TaskChange(task_id="task-3", change_type="moved"),
            ],
            author=CommitAuthor(name="Bob Wilson", email="bob@example.com"),
        )

        commit = self.store.create_commit(self.project.id, request)

        self.assertEqual(commit.stats.tasks_added, 1)
        self.assertEqual(commit.stats.tasks_deleted, 1)
        self.assertEqual(commit.stats.tasks_modified, 0)
        self.assertEqual(commit.stats.total_changes, 3)
        self.assertEqual(commit.author.email, "bob@example.com")

    def test_camel_case_request(self):
        commit = self.store.create_commit(
            self.project.id,
            {
                "message": "Reorganize",
                "branchName": "main",
                "taskChanges": [{"taskId": "task-1", "changeType": "modified"}],
                "author": AUTHOR,
            },
        )
        self.assertEqual(commit.stats.tasks_modified, 1)

    def test_invalid_request_writes_nothing(self):
        before = self.store.get_store_stats()

        with self.assertRaises(ValidationError) as ctx:
            self.store.create_commit(
                self.project.id,
                _commit_request(message="", author={"name": "Jane", "email": "jane"}),
            )

        self.assertEqual(
            ctx.exception.errors,
            ["Commit message is required and must be non-empty", "Author email must be valid"],
        )
        self.assertEqual(self.store.get_store_stats(), before)

    def test_missing_project(self):
        with self.assertRaises(NotFoundError):
            self.store.create_commit("proj-missing", _commit_request())

    def test_branch_move_failure_rolls_back_commit(self):
        branch = self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})
        before = self.store.get_store_stats()
        original_build = DataStore._build

        def failing_build(model_cls, kind, document):
            if kind == "branch":
                raise ValidationError(["Branch head_commit_id must be a valid identifier"], data_type=kind)
            return original_build(model_cls, kind, document)

        with patch.object(DataStore, "_build", staticmethod(failing_build)):
            with self.assertRaises(ValidationError):
                self.store.create_commit(self.project.id, _commit_request())

        self.assertEqual(self.store.get_store_stats(), before)
        self.assertEqual(self.store.get_branch(branch.id).head_commit_id, self.root.id)

    def test_concurrent_commits_form_a_chain(self):
        branch = self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})
        errors = []

        def worker(name):
            try:
                for index in range(10):
                    self.store.create_commit(self.project.id, _commit_request(f"{name} {index}"))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(f"writer-{n}",)) for n in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        head_id = self.store.get_branch(branch.id).head_commit_id

        chain = []
        current = self.store.get_commit(head_id)
        while current is not None:
            chain.append(current.id)
            current = self.store.get_commit(current.parent_ids[0]) if current.parent_ids else None

        self.assertEqual(len(chain), 21)
        self.assertEqual(len(set(chain)), 21)
        self.assertEqual(chain[-1], self.root.id)

        # No two commits share a parent, so no update was lost
        new_commits = [self.store.get_commit(commit_id) for commit_id in chain[:-1]]
        parents = [commit.parent_ids[0] for commit in new_commits]
        self.assertEqual(len(set(parents)), 20)

    def test_list_commits_filters(self):
        self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})
        self.store.create_commit(
            self.project.id, _commit_request(author={"name": "Bob Wilson", "email": "bob@example.com"})
        )
        self.store.create_commit(self.project.id, _commit_request())

        everything = self.store.list_commits(self.project.id)
        self.assertEqual(everything.pagination.total, 3)
        timestamps = [c.timestamp for c in everything.data]
        self.assertEqual(timestamps, sorted(timestamps, reverse=True))

        bobs = self.store.list_commits(self.project.id, {"filters": {"author": "BOB"}})
        self.assertEqual(bobs.pagination.total, 1)

        with self.assertRaises(ValidationError):
            self.store.list_commits(self.project.id, {"filters": {"hash": "abc"}})

    def test_store_stats_count_parent_links(self):
        self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})
        self.store.create_commit(self.project.id, _commit_request())
        self.store.create_commit(self.project.id, _commit_request())

        stats = self.store.get_store_stats()
        self.assertEqual(stats.commits, 3)
        self.assertEqual(stats.edges, 2)


class TestBranches(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})
        self.root = self.store.create_commit(self.project.id, _commit_request("Initial commit"))
        self.main = self.store.create_branch(
            self.project.id, CreateBranchRequest(name="main", from_commit_id=self.root.id)
        )

    def test_create_defaults(self):
        self.assertEqual(self.main.head_commit_id, self.root.id)
        self.assertEqual(self.main.created_by, "current-user")
        self.assertFalse(self.main.is_default)
        self.assertFalse(self.main.is_protected)
        self.assertEqual(self.main.created_at, self.main.last_activity)

    def test_create_reports_every_problem(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_branch(self.project.id, {"name": "", "fromCommitId": "commit-missing"})

        self.assertEqual(
            ctx.exception.errors,
            [
                "Branch name is required and must be non-empty",
                "From commit does not exist: commit-missing",
            ],
        )

    def test_duplicate_name(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_branch(self.project.id, {"name": "main", "from_commit_id": self.root.id})
        self.assertEqual(ctx.exception.errors, ["Branch already exists in project: main"])

    def test_same_name_in_another_project(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})
        branch = self.store.create_branch(other.id, {"name": "main", "from_commit_id": self.root.id})
        self.assertEqual(branch.project_id, other.id)

    def test_project_scope_enforced_when_enabled(self):
        store = _store(ENFORCE_BRANCH_PROJECT_SCOPE=True)
        first = store.create_project({"name": "Garden", "owner": "jane"})
        second = store.create_project({"name": "Fitness", "owner": "bob"})
        commit = store.create_commit(first.id, _commit_request())

        with self.assertRaises(ConsistencyError):
            store.create_branch(second.id, {"name": "main", "from_commit_id": commit.id})
        self.assertEqual(store.get_store_stats().branches, 0)

    def test_missing_project(self):
        with self.assertRaises(NotFoundError):
            self.store.create_branch("proj-missing", {"name": "x", "from_commit_id": self.root.id})

    def test_single_default_branch(self):
        feature = self.store.create_branch(
            self.project.id, {"name": "feature/reports", "from_commit_id": self.root.id}
        )
        self.store.update_branch(self.main.id, {"is_default": True})

        with self.assertRaises(ConsistencyError):
            self.store.update_branch(feature.id, {"isDefault": True})
        self.assertFalse(self.store.get_branch(feature.id).is_default)

    def test_default_branch_must_match_project_default(self):
        feature = self.store.create_branch(
            self.project.id, {"name": "feature/reports", "from_commit_id": self.root.id}
        )

        with self.assertRaises(ConsistencyError):
            self.store.update_branch(feature.id, {"isDefault": True})

        self.assertFalse(self.store.get_branch(feature.id).is_default)
        self.assertTrue(self.store.update_branch(self.main.id, {"is_default": True}).is_default)

    def test_rename_of_default_branch_away_from_project_default(self):
        self.store.update_branch(self.main.id, {"is_default": True})

        with self.assertRaises(ConsistencyError):
            self.store.update_branch(self.main.id, {"name": "trunk"})

    def test_update_keeps_project_and_created_at(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})

        updated = self.store.update_branch(
            self.main.id,
            {"project_id": other.id, "createdAt": "2001-01-01T00:00:00Z", "is_protected": True},
        )

        self.assertEqual(updated.project_id, self.project.id)
        self.assertEqual(updated.created_at, self.main.created_at)
        self.assertTrue(updated.is_protected)

    def test_update_head_must_exist(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.update_branch(self.main.id, {"head_commit_id": "commit-missing"})
        self.assertEqual(ctx.exception.errors, ["Branch head commit does not exist: commit-missing"])

    def test_rename_clash(self):
        feature = self.store.create_branch(
            self.project.id, {"name": "feature/reports", "from_commit_id": self.root.id}
        )
        with self.assertRaises(ValidationError):
            self.store.update_branch(feature.id, {"name": "main"})

    def test_update_missing(self):
        with self.assertRaises(NotFoundError):
            self.store.update_branch("branch-missing", {"is_protected": True})

    def test_list_branches_default_first(self):
        self.store.create_branch(self.project.id, {"name": "feature/reports", "from_commit_id": self.root.id})
        self.store.update_branch(self.main.id, {"is_default": True})

        page = self.store.list_branches(self.project.id)
        self.assertEqual(page.data[0].id, self.main.id)

        protected = self.store.list_branches(self.project.id, {"filters": {"isProtected": True}})
        self.assertEqual(protected.pagination.total, 0)


if __name__ == "__main__":
    unittest.main()
