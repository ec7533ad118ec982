import unittest

from reallifegit.config import Settings
from reallifegit.dtos.query import QueryOptions, TaskFilters
from reallifegit.services.data_store import DataStore
from reallifegit.services.store_exceptions import NotFoundError, ValidationError


def _store(**overrides) -> DataStore:
    overrides.setdefault("SEED_ON_INIT", False)
    return DataStore(settings=Settings(**overrides)).init()


class TestProjectCrud(unittest.TestCase):
    def setUp(self):
        self.store = _store()

    def test_create_assigns_id_and_timestamps(self):
        project = self.store.create_project({"name": "Garden Planning System", "owner": "jane"})

        self.assertRegex(project.id, r"^proj-[0-9a-z]{9}$")
        self.assertEqual(project.created_at, project.updated_at)
        self.assertEqual(project.default_branch, "main")
        self.assertEqual(project.star_count, 0)
        self.assertEqual(self.store.get_project(project.id), project)

    def test_create_ignores_caller_supplied_id(self):
        project = self.store.create_project({"id": "proj-mine", "name": "Garden", "owner": "jane"})
        self.assertNotEqual(project.id, "proj-mine")

    def test_create_reports_all_violations(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_project({"name": " "})

        self.assertEqual(
            ctx.exception.errors,
            ["Project name is required and must be non-empty", "Project owner is required"],
        )
        self.assertEqual(self.store.get_store_stats().projects, 0)

    def test_unknown_field_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_project({"name": "Garden", "owner": "jane", "color": "green"})
        self.assertEqual(ctx.exception.errors, ["Unknown field for project: color"])

    def test_camel_case_payload(self):
        project = self.store.create_project(
            {"name": "Garden", "owner": "jane", "isPrivate": True, "defaultBranch": "trunk"}
        )
        self.assertTrue(project.is_private)
        self.assertEqual(project.default_branch, "trunk")

    def test_update_round_trip(self):
        project = self.store.create_project({"name": "Garden", "owner": "jane"})

        updated = self.store.update_project(project.id, {"description": "Beds and seeds", "id": "proj-x"})

        self.assertEqual(updated.id, project.id)
        self.assertEqual(updated.description, "Beds and seeds")
        self.assertEqual(updated.created_at, project.created_at)
        self.assertGreater(updated.updated_at, project.updated_at)
        self.assertEqual(self.store.get_project(project.id), updated)

    def test_update_keeps_created_at(self):
        project = self.store.create_project({"name": "Garden", "owner": "jane"})

        updated = self.store.update_project(
            project.id, {"createdAt": "2001-01-01T00:00:00Z", "name": "Garden Beds"}
        )

        self.assertEqual(updated.created_at, project.created_at)
        self.assertEqual(updated.name, "Garden Beds")

    def test_repeated_updates_strictly_increase_updated_at(self):
        project = self.store.create_project({"name": "Garden", "owner": "jane"})
        stamps = [project.updated_at]
        for count in range(5):
            stamps.append(self.store.update_project(project.id, {"star_count": count}).updated_at)

        for earlier, later in zip(stamps, stamps[1:]):
            self.assertGreater(later, earlier)

    def test_invalid_update_leaves_state_untouched(self):
        project = self.store.create_project({"name": "Garden", "owner": "jane"})

        with self.assertRaises(ValidationError):
            self.store.update_project(project.id, {"name": "", "star_count": -3})

        self.assertEqual(self.store.get_project(project.id), project)

    def test_update_missing(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.store.update_project("proj-missing", {"name": "x"})
        self.assertEqual(str(ctx.exception), "Project not found: proj-missing")

    def test_delete_twice(self):
        project = self.store.create_project({"name": "Garden", "owner": "jane"})

        self.assertTrue(self.store.delete_project(project.id))
        self.assertFalse(self.store.delete_project(project.id))
        self.assertIsNone(self.store.get_project(project.id))

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.store.get_project("proj-missing"))
        self.assertIsNone(self.store.get_task("task-missing"))
        self.assertIsNone(self.store.get_commit("commit-missing"))
        self.assertIsNone(self.store.get_branch("branch-missing"))
        self.assertIsNone(self.store.get_issue("issue-missing"))
        self.assertIsNone(self.store.get_pull_request("pr-missing"))

    def test_search_and_owner_filters(self):
        self.store.create_project({"name": "Garden Planning", "owner": "jane"})
        self.store.create_project({"name": "Fitness", "owner": "bob", "description": "GARDEN walks"})
        self.store.create_project({"name": "Recipes", "owner": "jane"})

        found = self.store.list_projects({"filters": {"search": "garden"}})
        self.assertEqual(found.pagination.total, 2)

        owned = self.store.list_projects({"filters": {"owner": "jane"}})
        self.assertEqual({p.name for p in owned.data}, {"Garden Planning", "Recipes"})


class TestListQueries(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})
        self.tasks = [
            self.store.create_task(self.project.id, {"title": f"Task {index}"}) for index in range(7)
        ]

    def test_pagination_metadata(self):
        for limit, offset in [(3, 0), (3, 3), (3, 5), (7, 0), (10, 2), (2, 7)]:
            page = self.store.list_tasks(self.project.id, {"limit": limit, "offset": offset})
            info = page.pagination

            self.assertEqual(info.total, 7)
            self.assertEqual(info.limit, limit)
            self.assertEqual(info.offset, offset)
            self.assertEqual(len(page.data), max(0, min(limit, 7 - offset)))
            self.assertEqual(info.has_next, offset + limit < 7)
            self.assertEqual(info.has_prev, offset > 0)

    def test_default_limit(self):
        page = self.store.list_tasks(self.project.id)
        self.assertEqual(page.pagination.limit, 50)
        self.assertEqual(page.pagination.offset, 0)

    def test_limit_is_clamped(self):
        store = _store(MAX_PAGE_LIMIT=5)
        project = store.create_project({"name": "Garden", "owner": "jane"})
        for index in range(7):
            store.create_task(project.id, {"title": f"Task {index}"})

        page = store.list_tasks(project.id, {"limit": 500})

        self.assertEqual(page.pagination.limit, 5)
        self.assertEqual(len(page.data), 5)
        self.assertTrue(page.pagination.has_next)

    def test_invalid_options(self):
        with self.assertRaises(ValidationError):
            self.store.list_tasks(self.project.id, {"limit": 0})
        with self.assertRaises(ValidationError):
            self.store.list_tasks(self.project.id, {"offset": -1})
        with self.assertRaises(ValidationError):
            self.store.list_tasks(self.project.id, {"sortOrder": "sideways"})

    def test_filters(self):
        self.store.update_task(self.tasks[0].id, {"status": "done"})
        self.store.update_task(self.tasks[1].id, {"status": "done", "assignee": "bob"})

        done = self.store.list_tasks(self.project.id, {"filters": {"status": "done"}})
        self.assertEqual({t.id for t in done.data}, {self.tasks[0].id, self.tasks[1].id})

        bobs = self.store.list_tasks(
            self.project.id, QueryOptions[TaskFilters](filters=TaskFilters(status="done", assignee="bob"))
        )
        self.assertEqual([t.id for t in bobs.data], [self.tasks[1].id])

    def test_unknown_filter_key(self):
        with self.assertRaises(ValidationError):
            self.store.list_tasks(self.project.id, {"filters": {"colour": "red"}})

    def test_sort_by_field(self):
        page = self.store.list_tasks(self.project.id, {"sortBy": "title", "sortOrder": "asc"})
        self.assertEqual([t.title for t in page.data], [f"Task {index}" for index in range(7)])

        page = self.store.list_tasks(self.project.id, {"sort_by": "title", "sort_order": "desc"})
        self.assertEqual(page.data[0].title, "Task 6")

    def test_unknown_sort_field(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.list_tasks(self.project.id, {"sortBy": "metadata"})
        self.assertEqual(ctx.exception.errors, ["Unknown sort field for task: metadata"])

    def test_default_sort_is_most_recently_updated(self):
        self.store.update_task(self.tasks[0].id, {"title": "Touched"})

        page = self.store.list_tasks(self.project.id)

        self.assertEqual(page.data[0].id, self.tasks[0].id)

    def test_none_sorts_last(self):
        self.store.update_task(self.tasks[3].id, {"assignee": "alice"})
        self.store.update_task(self.tasks[4].id, {"assignee": "bob"})

        for order in ("asc", "desc"):
            page = self.store.list_tasks(self.project.id, {"sortBy": "assignee", "sortOrder": order})
            assignees = [t.assignee for t in page.data]
            self.assertEqual(assignees[2:], [None] * 5)

    def test_list_tasks_across_projects(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})
        self.store.create_task(other.id, {"title": "Run"})

        self.assertEqual(self.store.list_tasks().pagination.total, 8)
        self.assertEqual(self.store.list_tasks(other.id).pagination.total, 1)


class TestTasks(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})

    def test_defaults(self):
        task = self.store.create_task(self.project.id, {"title": "Water plants"})

        self.assertEqual(task.status, "todo")
        self.assertEqual(task.priority, "medium")
        self.assertEqual(task.labels, [])
        self.assertEqual(task.project_id, self.project.id)

    def test_missing_project(self):
        with self.assertRaises(NotFoundError):
            self.store.create_task("proj-missing", {"title": "Water plants"})

    def test_invalid_status(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_task(self.project.id, {"title": "Water", "status": "later"})
        self.assertIn(
            "Task status must be one of: todo, in_progress, review, done, blocked, cancelled",
            ctx.exception.errors,
        )

    def test_update_cannot_move_task_to_another_project(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})
        task = self.store.create_task(self.project.id, {"title": "Water plants"})

        updated = self.store.update_task(task.id, {"projectId": other.id, "status": "done"})

        self.assertEqual(updated.project_id, self.project.id)
        self.assertEqual(updated.status, "done")
        self.assertEqual(self.store.list_tasks(other.id).pagination.total, 0)

    def test_delete(self):
        task = self.store.create_task(self.project.id, {"title": "Water plants"})
        self.assertTrue(self.store.delete_task(task.id))
        self.assertFalse(self.store.delete_task(task.id))


class TestIssues(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})

    def _issue(self, title="Need better progress tracking"):
        return self.store.create_issue(self.project.id, {"title": title, "description": "Details"})

    def test_numbers_are_never_reused(self):
        first = self._issue()
        second = self._issue()
        self.store.delete_issue(second.id)
        third = self._issue()

        self.assertEqual([first.number, second.number, third.number], [1, 2, 3])

    def test_update_keeps_number_and_project(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})
        first = self._issue()
        second = self._issue()

        updated = self.store.update_issue(
            second.id, {"number": first.number, "project_id": other.id, "title": "Renamed"}
        )

        self.assertEqual(updated.number, 2)
        self.assertEqual(updated.project_id, self.project.id)
        self.assertEqual(updated.title, "Renamed")
        numbers = [i.number for i in self.store.list_issues(self.project.id).data]
        self.assertEqual(sorted(numbers), [1, 2])

    def test_numbers_are_per_project(self):
        other = self.store.create_project({"name": "Fitness", "owner": "bob"})
        self._issue()
        issue = self.store.create_issue(other.id, {"title": "Shoes", "description": "Buy"})
        self.assertEqual(issue.number, 1)

    def test_defaults(self):
        issue = self._issue()
        self.assertEqual(issue.status, "open")
        self.assertEqual(issue.author, "current-user")
        self.assertIsNone(issue.closed_at)

    def test_close_and_reopen(self):
        issue = self._issue()

        closed = self.store.update_issue(issue.id, {"status": "closed"})
        self.assertEqual(closed.closed_at, closed.updated_at)

        reopened = self.store.update_issue(issue.id, {"status": "open"})
        self.assertIsNone(reopened.closed_at)

    def test_add_comment(self):
        issue = self._issue()

        commented = self.store.add_issue_comment(issue.id, "Looking into it", author="bob")

        self.assertEqual(len(commented.comments), 1)
        self.assertEqual(commented.comments[0].author, "bob")
        self.assertEqual(commented.comments[0].content, "Looking into it")
        self.assertGreater(commented.updated_at, issue.updated_at)

    def test_add_comment_errors(self):
        issue = self._issue()
        with self.assertRaises(ValidationError):
            self.store.add_issue_comment(issue.id, "   ")
        with self.assertRaises(NotFoundError):
            self.store.add_issue_comment("issue-missing", "Hello")

    def test_issue_filters(self):
        issue = self._issue()
        self._issue("Other")
        self.store.update_issue(issue.id, {"status": "in_progress"})

        page = self.store.list_issues(self.project.id, {"filters": {"status": "in_progress"}})
        self.assertEqual([i.id for i in page.data], [issue.id])


class TestPullRequests(unittest.TestCase):
    def setUp(self):
        self.store = _store()
        self.project = self.store.create_project({"name": "Garden", "owner": "jane"})

    def _open(self):
        return self.store.create_pull_request(
            self.project.id,
            {
                "title": "Add reports",
                "description": "Weekly summary",
                "fromBranch": "feature/reports",
                "toBranch": "main",
                "reviewers": ["bob"],
            },
        )

    def test_create(self):
        pull_request = self._open()

        self.assertEqual(pull_request.number, 1)
        self.assertEqual(pull_request.status, "open")
        self.assertEqual(pull_request.author, "current-user")
        self.assertEqual(pull_request.reviewers, ["bob"])

    def test_numbering_is_monotonic(self):
        first = self._open()
        self.assertTrue(self.store.delete_pull_request(first.id))
        second = self._open()
        self.assertEqual(second.number, 2)

    def test_invalid_request(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create_pull_request(
                self.project.id, {"title": "", "description": "x", "from_branch": "a", "to_branch": "b"}
            )
        self.assertEqual(
            ctx.exception.errors, ["Pull request title is required and must be non-empty"]
        )

    def test_merge_stamps_merged_at(self):
        pull_request = self._open()

        merged = self.store.update_pull_request(pull_request.id, {"status": "merged"})

        self.assertEqual(merged.merged_at, merged.updated_at)
        self.assertIsNone(merged.closed_at)

    def test_update_keeps_number(self):
        first = self._open()
        second = self._open()

        updated = self.store.update_pull_request(second.id, {"number": first.number})

        self.assertEqual(updated.number, 2)

    def test_missing_project(self):
        with self.assertRaises(NotFoundError):
            self.store.create_pull_request(
                "proj-missing",
                {"title": "t", "description": "d", "from_branch": "a", "to_branch": "b"},
            )


class TestLifecycle(unittest.TestCase):
    def test_seeded_init(self):
        store = DataStore(settings=Settings()).init()
        stats = store.get_store_stats()

        self.assertEqual(stats.projects, 2)
        self.assertEqual(stats.commits, 16)
        self.assertEqual(stats.branches, 4)
        self.assertEqual(stats.tasks, 20)
        self.assertEqual(stats.issues, 10)
        self.assertEqual(stats.pull_requests, 6)
        self.assertEqual(stats.edges, 14)

    def test_seeded_counters_continue_numbering(self):
        store = DataStore(settings=Settings()).init()
        project = store.list_projects({"limit": 1}).data[0]

        issue = store.create_issue(project.id, {"title": "New", "description": "Details"})
        pull_request = store.create_pull_request(
            project.id, {"title": "t", "description": "d", "from_branch": "a", "to_branch": "main"}
        )

        self.assertEqual(issue.number, 6)
        self.assertEqual(pull_request.number, 4)

    def test_seed_is_deterministic(self):
        first = DataStore(settings=Settings()).init()
        second = DataStore(settings=Settings()).init()

        def names(store):
            return sorted(p.name for p in store.list_projects().data)

        self.assertEqual(names(first), names(second))

    def test_init_is_idempotent(self):
        store = DataStore(settings=Settings())
        store.init()
        store.init()
        self.assertEqual(store.get_store_stats().projects, 2)

    def test_reset_restores_seed(self):
        store = DataStore(settings=Settings()).init()
        store.create_project({"name": "Extra", "owner": "jane"})

        stats = store.reset()

        self.assertEqual(stats.projects, 2)

    def test_clear_all_and_shutdown(self):
        store = DataStore(settings=Settings()).init()

        store.clear_all()
        self.assertTrue(store.get_store_stats().is_empty)
        self.assertFalse(store.initialized)

        store.init()
        store.shutdown()
        self.assertTrue(store.get_store_stats().is_empty)

    def test_unseeded_store_is_empty(self):
        self.assertTrue(_store().get_store_stats().is_empty)

    def test_stores_are_independent(self):
        first = _store()
        second = _store()
        first.create_project({"name": "Garden", "owner": "jane"})

        self.assertEqual(second.get_store_stats().projects, 0)


if __name__ == "__main__":
    unittest.main()
