"""
Request DTOs for the compound store mutations.

Fields carry no length constraints; the rule sets in
``reallifegit.services.validation`` report every problem with a request.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reallifegit.entities.commit import CommitAuthor, TaskChange


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateCommitRequest(_Request):
    """Request to record a new commit on a branch."""

    message: str
    branch_name: str
    task_changes: List[TaskChange] = Field(default_factory=list)
    author: CommitAuthor


class CreateBranchRequest(_Request):
    """Request to create a branch pointing at an existing commit."""

    name: str
    from_commit_id: str
    description: Optional[str] = None
    created_by: Optional[str] = Field(None, description="Defaults to Settings.CURRENT_USER")


class CreatePullRequestRequest(_Request):
    """Request to open a pull request between two branches."""

    title: str
    description: str
    from_branch: str
    to_branch: str
    reviewers: Optional[List[str]] = None
    author: Optional[str] = Field(None, description="Defaults to Settings.CURRENT_USER")


def request_payload(request: Any, request_cls: Type[BaseModel]) -> Dict[str, Any]:
    """Plain dict view of a request DTO or mapping, keyed by field name."""
    if isinstance(request, BaseModel):
        return request.model_dump()
    if request is None:
        return {}
    lookup: Dict[str, str] = {}
    for name, info in request_cls.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return {lookup.get(key, key): value for key, value in dict(request).items()}
