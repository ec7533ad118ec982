"""Custom exceptions for the in-memory data store."""

from __future__ import annotations

from typing import Iterable, Optional


class DataStoreError(Exception):
    """Base exception for data store failures."""


class ValidationError(DataStoreError):
    """Raised when a payload violates one or more validation rules."""

    def __init__(self, errors: Iterable[str], data_type: Optional[str] = None):
        self.errors = list(errors)
        self.data_type = data_type
        prefix = f"Validation failed for {data_type}" if data_type else "Validation failed"
        super().__init__(f"{prefix}: {', '.join(self.errors)}")


class NotFoundError(DataStoreError):
    """Raised when a mutation targets an id that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConsistencyError(DataStoreError):
    """Raised when a mutation would break a cross-entity invariant."""
