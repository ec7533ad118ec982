"""Repository for Project entities."""

from reallifegit.entities.project import Project

from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    def __init__(self) -> None:
        super().__init__("projects", Project)
