"""
Validation rules for entities and mutation requests.

Each ``validate_*`` function takes a plain mapping keyed by field name (aliases
are accepted and normalized) and returns a ``ValidationResult`` listing every
violated rule in the order the rules were checked. Nothing here raises for bad
input; ``validate_or_raise`` turns a failed result into ``ValidationError``.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from reallifegit.dtos.requests import (
    CreateBranchRequest,
    CreateCommitRequest,
    CreatePullRequestRequest,
    request_payload,
)
from reallifegit.entities import (
    Branch,
    ChangeType,
    Commit,
    CommitStats,
    Issue,
    IssuePriority,
    IssueStatus,
    Project,
    PullRequest,
    PullRequestStatus,
    Task,
    TaskChange,
    TaskPriority,
    TaskStatus,
    compute_commit_stats,
)
from reallifegit.entities.enums import enum_values
from reallifegit.services.store_exceptions import ValidationError
from reallifegit.utils.datetime import parse_datetime

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
COMMIT_HASH_PATTERN = re.compile(r"^[a-f0-9]{40}$")
SHORT_HASH_PATTERN = re.compile(r"^[a-f0-9]{7}$")


class ValidationResult(BaseModel):
    errors: List[str] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors


# --------------------------------------------------------------------------
# Primitive checks
# --------------------------------------------------------------------------


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def is_valid_date(value: Any) -> bool:
    """True for datetime values and ISO-8601 strings."""
    if isinstance(value, datetime):
        return True
    if isinstance(value, str) and value:
        return parse_datetime(value, default_now=False) is not None
    return False


def is_in_enum(value: Any, enum_cls: Type[Enum]) -> bool:
    value = getattr(value, "value", value)
    return value in enum_values(enum_cls)


def is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and ID_PATTERN.match(value) is not None


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_non_negative_number(value: Any) -> bool:
    # bool is an int subclass but never a count
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def is_commit_hash(value: Any) -> bool:
    return isinstance(value, str) and COMMIT_HASH_PATTERN.match(value) is not None


def is_short_commit_hash(value: Any) -> bool:
    return isinstance(value, str) and SHORT_HASH_PATTERN.match(value) is not None


def _get(data: Any, key: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(key)
    return getattr(data, key, None)


def _as_mapping(data: Any, model_cls: Type[BaseModel]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump()
    if not isinstance(data, Mapping):
        return {}
    if hasattr(model_cls, "normalize_keys"):
        return model_cls.normalize_keys(data)
    return request_payload(data, model_cls)


def _check_timestamps_order(data: Mapping[str, Any], label: str, errors: List[str]) -> None:
    created = parse_datetime(data.get("created_at"), default_now=False)
    updated = parse_datetime(data.get("updated_at"), default_now=False)
    if created and updated and updated < created:
        errors.append(f"{label} updated_at must not be earlier than created_at")


# --------------------------------------------------------------------------
# Entity rule sets
# --------------------------------------------------------------------------


def validate_project(data: Any) -> ValidationResult:
    data = _as_mapping(data, Project)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("Project ID must be a valid identifier")
    if not is_non_empty_string(data.get("name")):
        errors.append("Project name is required and must be non-empty")
    if data.get("description") is not None and not isinstance(data.get("description"), str):
        errors.append("Project description must be a string")
    if not is_non_empty_string(data.get("owner")):
        errors.append("Project owner is required")
    if not is_valid_date(data.get("created_at")):
        errors.append("Project created_at must be a valid date")
    if not is_valid_date(data.get("updated_at")):
        errors.append("Project updated_at must be a valid date")
    if not isinstance(data.get("is_private"), bool):
        errors.append("Project is_private must be a boolean")
    if not is_non_empty_string(data.get("default_branch")):
        errors.append("Project default_branch is required")
    if not is_non_negative_number(data.get("star_count")):
        errors.append("Project star_count must be a non-negative number")
    if not is_non_negative_number(data.get("fork_count")):
        errors.append("Project fork_count must be a non-negative number")
    _check_timestamps_order(data, "Project", errors)

    return ValidationResult(errors=errors)


def validate_task(data: Any) -> ValidationResult:
    data = _as_mapping(data, Task)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("Task ID must be a valid identifier")
    if not is_non_empty_string(data.get("title")):
        errors.append("Task title is required and must be non-empty")
    if data.get("description") is not None and not isinstance(data.get("description"), str):
        errors.append("Task description must be a string")
    if not is_in_enum(data.get("status"), TaskStatus):
        errors.append(f"Task status must be one of: {', '.join(enum_values(TaskStatus))}")
    if not is_in_enum(data.get("priority"), TaskPriority):
        errors.append(f"Task priority must be one of: {', '.join(enum_values(TaskPriority))}")
    if data.get("assignee") is not None and not is_non_empty_string(data.get("assignee")):
        errors.append("Task assignee must be a non-empty string if provided")
    if not is_valid_date(data.get("created_at")):
        errors.append("Task created_at must be a valid date")
    if not is_valid_date(data.get("updated_at")):
        errors.append("Task updated_at must be a valid date")
    if data.get("due_date") is not None and not is_valid_date(data.get("due_date")):
        errors.append("Task due_date must be a valid date if provided")
    if not is_sequence(data.get("labels")):
        errors.append("Task labels must be an array")
    if not isinstance(data.get("metadata"), Mapping):
        errors.append("Task metadata must be an object")
    if not is_valid_id(data.get("project_id")):
        errors.append("Task project_id must be a valid identifier")
    _check_timestamps_order(data, "Task", errors)

    return ValidationResult(errors=errors)


def _check_author(author: Any, prefix: str, errors: List[str], missing: str) -> None:
    if author is None or not (isinstance(author, Mapping) or isinstance(author, BaseModel)):
        errors.append(missing)
        return
    if not is_non_empty_string(_get(author, "name")):
        errors.append(f"{prefix} name is required")
    if not is_email(_get(author, "email")):
        errors.append(f"{prefix} email must be valid")


def _normalize_changes(changes: Any) -> List[Any]:
    return [
        TaskChange.normalize_keys(change) if isinstance(change, Mapping) else change
        for change in changes
    ]


def _check_task_changes(changes: Any, errors: List[str]) -> None:
    for index, change in enumerate(_normalize_changes(changes)):
        if not is_non_empty_string(_get(change, "task_id")):
            errors.append(f"Task change {index} task_id is required")
        if not is_in_enum(_get(change, "change_type"), ChangeType):
            errors.append(
                f"Task change {index} change_type must be one of: {', '.join(enum_values(ChangeType))}"
            )


def validate_commit(data: Any) -> ValidationResult:
    data = _as_mapping(data, Commit)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("Commit ID must be a valid identifier")
    if not is_commit_hash(data.get("hash")):
        errors.append("Commit hash must be a valid 40-character hex string")
    if not is_short_commit_hash(data.get("short_hash")):
        errors.append("Commit short_hash must be a valid 7-character hex string")
    elif is_commit_hash(data.get("hash")) and data["short_hash"] != data["hash"][:7]:
        errors.append("Commit short_hash must be the first 7 characters of hash")
    if not is_non_empty_string(data.get("message")):
        errors.append("Commit message is required and must be non-empty")
    _check_author(
        data.get("author"), "Commit author", errors, "Commit author is required and must be an object"
    )
    if not is_valid_date(data.get("timestamp")):
        errors.append("Commit timestamp must be a valid date")
    if not is_sequence(data.get("parent_ids")):
        errors.append("Commit parent_ids must be an array")
    if not is_non_empty_string(data.get("branch_name")):
        errors.append("Commit branch_name is required")
    if not is_valid_id(data.get("project_id")):
        errors.append("Commit project_id must be a valid identifier")

    changes = data.get("changed_tasks")
    if not is_sequence(changes):
        errors.append("Commit changed_tasks must be an array")
    else:
        _check_task_changes(changes, errors)
        stats = data.get("stats")
        if isinstance(stats, BaseModel):
            stats = stats.model_dump()
        if isinstance(stats, Mapping):
            expected = compute_commit_stats(_normalize_changes(changes)).model_dump()
            if CommitStats.normalize_keys(stats) != expected:
                errors.append("Commit stats must match changed_tasks")

    return ValidationResult(errors=errors)


def validate_branch(data: Any) -> ValidationResult:
    data = _as_mapping(data, Branch)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("Branch ID must be a valid identifier")
    if not is_non_empty_string(data.get("name")):
        errors.append("Branch name is required and must be non-empty")
    if not is_valid_id(data.get("project_id")):
        errors.append("Branch project_id must be a valid identifier")
    if not is_valid_id(data.get("head_commit_id")):
        errors.append("Branch head_commit_id must be a valid identifier")
    if not is_valid_date(data.get("created_at")):
        errors.append("Branch created_at must be a valid date")
    if not is_non_empty_string(data.get("created_by")):
        errors.append("Branch created_by is required")
    if not isinstance(data.get("is_default"), bool):
        errors.append("Branch is_default must be a boolean")
    if not isinstance(data.get("is_protected"), bool):
        errors.append("Branch is_protected must be a boolean")
    if not is_valid_date(data.get("last_activity")):
        errors.append("Branch last_activity must be a valid date")

    return ValidationResult(errors=errors)


def validate_issue(data: Any) -> ValidationResult:
    data = _as_mapping(data, Issue)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("Issue ID must be a valid identifier")
    number = data.get("number")
    if not is_non_negative_number(number) or number < 1:
        errors.append("Issue number must be a positive number")
    if not is_non_empty_string(data.get("title")):
        errors.append("Issue title is required and must be non-empty")
    if not is_non_empty_string(data.get("description")):
        errors.append("Issue description is required and must be non-empty")
    if not is_in_enum(data.get("status"), IssueStatus):
        errors.append(f"Issue status must be one of: {', '.join(enum_values(IssueStatus))}")
    if not is_in_enum(data.get("priority"), IssuePriority):
        errors.append(f"Issue priority must be one of: {', '.join(enum_values(IssuePriority))}")
    if not is_non_empty_string(data.get("author")):
        errors.append("Issue author is required")
    if not is_valid_id(data.get("project_id")):
        errors.append("Issue project_id must be a valid identifier")

    status = getattr(data.get("status"), "value", data.get("status"))
    closed_at = data.get("closed_at")
    if status == IssueStatus.CLOSED.value and closed_at is None:
        errors.append("Issue closed_at is required when status is closed")
    elif status != IssueStatus.CLOSED.value and closed_at is not None:
        errors.append("Issue closed_at must be empty unless status is closed")
    elif closed_at is not None and not is_valid_date(closed_at):
        errors.append("Issue closed_at must be a valid date")
    _check_timestamps_order(data, "Issue", errors)

    return ValidationResult(errors=errors)


def validate_pull_request(data: Any) -> ValidationResult:
    data = _as_mapping(data, PullRequest)
    errors: List[str] = []

    if not is_valid_id(data.get("id")):
        errors.append("PullRequest ID must be a valid identifier")
    number = data.get("number")
    if not is_non_negative_number(number) or number < 1:
        errors.append("PullRequest number must be a positive number")
    if not is_non_empty_string(data.get("title")):
        errors.append("PullRequest title is required and must be non-empty")
    if not is_non_empty_string(data.get("from_branch")):
        errors.append("PullRequest from_branch is required")
    if not is_non_empty_string(data.get("to_branch")):
        errors.append("PullRequest to_branch is required")
    if not is_in_enum(data.get("status"), PullRequestStatus):
        errors.append(
            f"PullRequest status must be one of: {', '.join(enum_values(PullRequestStatus))}"
        )
    if not is_non_empty_string(data.get("author")):
        errors.append("PullRequest author is required")
    if not is_sequence(data.get("reviewers")):
        errors.append("PullRequest reviewers must be an array")
    if not is_valid_id(data.get("project_id")):
        errors.append("PullRequest project_id must be a valid identifier")
    _check_timestamps_order(data, "PullRequest", errors)

    return ValidationResult(errors=errors)


# --------------------------------------------------------------------------
# Request rule sets
# --------------------------------------------------------------------------


def validate_create_commit_request(data: Any) -> ValidationResult:
    data = _as_mapping(data, CreateCommitRequest)
    errors: List[str] = []

    if not is_non_empty_string(data.get("message")):
        errors.append("Commit message is required and must be non-empty")
    if not is_non_empty_string(data.get("branch_name")):
        errors.append("Branch name is required")
    changes = data.get("task_changes")
    if not is_sequence(changes):
        errors.append("Task changes must be an array")
    else:
        _check_task_changes(changes, errors)
    _check_author(data.get("author"), "Author", errors, "Author information is required")

    return ValidationResult(errors=errors)


def validate_create_branch_request(data: Any) -> ValidationResult:
    data = _as_mapping(data, CreateBranchRequest)
    errors: List[str] = []

    if not is_non_empty_string(data.get("name")):
        errors.append("Branch name is required and must be non-empty")
    if not is_valid_id(data.get("from_commit_id")):
        errors.append("From commit ID must be a valid identifier")
    if data.get("description") is not None and not isinstance(data.get("description"), str):
        errors.append("Branch description must be a string if provided")

    return ValidationResult(errors=errors)


def validate_create_pull_request_request(data: Any) -> ValidationResult:
    data = _as_mapping(data, CreatePullRequestRequest)
    errors: List[str] = []

    if not is_non_empty_string(data.get("title")):
        errors.append("Pull request title is required and must be non-empty")
    if not is_non_empty_string(data.get("description")):
        errors.append("Pull request description is required and must be non-empty")
    if not is_non_empty_string(data.get("from_branch")):
        errors.append("From branch is required")
    if not is_non_empty_string(data.get("to_branch")):
        errors.append("To branch is required")
    if data.get("reviewers") is not None and not is_sequence(data.get("reviewers")):
        errors.append("Reviewers must be an array if provided")

    return ValidationResult(errors=errors)


VALIDATORS: Dict[str, Callable[[Any], ValidationResult]] = {
    "project": validate_project,
    "task": validate_task,
    "commit": validate_commit,
    "branch": validate_branch,
    "issue": validate_issue,
    "pull_request": validate_pull_request,
    "create_commit_request": validate_create_commit_request,
    "create_branch_request": validate_create_branch_request,
    "create_pull_request_request": validate_create_pull_request_request,
}

# camelCase kind names used at the boundary
_KIND_ALIASES = {
    "pullRequest": "pull_request",
    "createCommitRequest": "create_commit_request",
    "createBranchRequest": "create_branch_request",
    "createPullRequestRequest": "create_pull_request_request",
}


def validate_data(data_type: str, data: Any) -> ValidationResult:
    """Run the rule set registered for ``data_type``."""
    validator: Optional[Callable[[Any], ValidationResult]] = VALIDATORS.get(
        _KIND_ALIASES.get(data_type, data_type)
    )
    if validator is None:
        return ValidationResult(errors=[f"Unknown data type: {data_type}"])
    return validator(data)


def validate_or_raise(data_type: str, data: Any) -> None:
    """
    Raise ValidationError carrying every violated rule for ``data``.

    Raises:
        ValidationError: if any rule fails (or the kind is unknown)
    """
    result = validate_data(data_type, data)
    if not result.is_valid:
        raise ValidationError(result.errors, data_type=data_type)


def errors_from_pydantic(exc: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into ``"field: message"`` strings."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages
