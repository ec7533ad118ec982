"""Repository for Issue entities."""

from typing import List

from reallifegit.entities.issue import Issue

from .base import BaseRepository


class IssueRepository(BaseRepository[Issue]):
    def __init__(self) -> None:
        super().__init__("issues", Issue)

    def find_by_project(self, project_id: str) -> List[Issue]:
        return self.find_many({"project_id": project_id}, sort=[("number", 1)])

    def max_number(self, project_id: str) -> int:
        """Highest issue number used in the project, 0 when there are none."""
        return max((issue.number for issue in self.find_many({"project_id": project_id})), default=0)
