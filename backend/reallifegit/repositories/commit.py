"""Repository for Commit entities."""

from reallifegit.entities.commit import Commit

from .base import BaseRepository


class CommitRepository(BaseRepository[Commit]):
    """Commits are append-only; nothing here updates or deletes a single commit."""

    def __init__(self) -> None:
        super().__init__("commits", Commit)

    def count_edges(self) -> int:
        """Number of parent links across all stored commits."""
        return sum(len(commit.parent_ids) for commit in self._documents.values())
