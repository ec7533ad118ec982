"""Base entity shared by every stored model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from reallifegit.utils.datetime import ensure_aware_utc


class BaseEntity(BaseModel):
    """
    Common configuration for entities held by the data store.

    Entities are frozen: the store replaces a stored value with a new one
    instead of editing it in place. Field names are snake_case; dumping with
    ``by_alias=True`` yields the camelCase names used at the boundary.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def _aware_datetimes(cls, value: Any) -> Any:
        # Naive timestamps are taken as UTC so every stored value compares
        if isinstance(value, datetime):
            return ensure_aware_utc(value)
        return value

    @classmethod
    def field_lookup(cls) -> Dict[str, str]:
        """Map both field names and aliases to field names."""
        lookup: Dict[str, str] = {}
        for name, info in cls.model_fields.items():
            lookup[name] = name
            if info.alias:
                lookup[info.alias] = name
        return lookup

    @classmethod
    def normalize_keys(cls, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Rewrite alias keys to field names; unknown keys are kept as given."""
        lookup = cls.field_lookup()
        return {lookup.get(key, key): value for key, value in payload.items()}

    @classmethod
    def unknown_keys(cls, keys: Iterable[str]) -> List[str]:
        lookup = cls.field_lookup()
        return [key for key in keys if key not in lookup]
