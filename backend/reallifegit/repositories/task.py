"""Repository for Task entities."""

from typing import List

from reallifegit.entities.task import Task

from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    def __init__(self) -> None:
        super().__init__("tasks", Task)

    def find_by_project(self, project_id: str) -> List[Task]:
        return self.find_many({"project_id": project_id}, sort=[("updated_at", -1)])
