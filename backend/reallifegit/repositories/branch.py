"""Repository for Branch entities."""

from typing import List, Optional

from reallifegit.entities.branch import Branch

from .base import BaseRepository

# Default branch first, then most recently active
DEFAULT_BRANCH_SORT = [("is_default", -1), ("last_activity", -1)]


class BranchRepository(BaseRepository[Branch]):
    def __init__(self) -> None:
        super().__init__("branches", Branch)

    def find_by_project(self, project_id: str) -> List[Branch]:
        return self.find_many({"project_id": project_id}, sort=DEFAULT_BRANCH_SORT)

    def find_by_project_and_name(self, project_id: str, name: str) -> Optional[Branch]:
        return self.find_one({"project_id": project_id, "name": name})

    def find_default(self, project_id: str) -> Optional[Branch]:
        return self.find_one({"project_id": project_id, "is_default": True})
