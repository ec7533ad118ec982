from __future__ import annotations

from datetime import datetime

from .base import BaseEntity


class Branch(BaseEntity):
    """Named, movable pointer to a commit (its head)."""

    id: str
    name: str
    project_id: str
    head_commit_id: str
    created_at: datetime
    created_by: str
    is_default: bool = False
    is_protected: bool = False
    last_activity: datetime
