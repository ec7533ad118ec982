"""Repository for PullRequest entities."""

from typing import List

from reallifegit.entities.pull_request import PullRequest

from .base import BaseRepository


class PullRequestRepository(BaseRepository[PullRequest]):
    def __init__(self) -> None:
        super().__init__("pull_requests", PullRequest)

    def find_by_project(self, project_id: str) -> List[PullRequest]:
        return self.find_many({"project_id": project_id}, sort=[("number", 1)])

    def max_number(self, project_id: str) -> int:
        return max((pr.number for pr in self.find_many({"project_id": project_id})), default=0)
