"""Project entity - a repository of tasks and their history."""

from datetime import datetime

from pydantic import Field

from .base import BaseEntity


class Project(BaseEntity):
    id: str
    name: str
    description: str = ""
    owner: str
    created_at: datetime
    updated_at: datetime
    is_private: bool = False
    default_branch: str = "main"
    star_count: int = Field(default=0, ge=0)
    fork_count: int = Field(default=0, ge=0)
