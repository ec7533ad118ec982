"""DTOs describing the data store itself (health checks, debugging)."""

from datetime import datetime
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StoreStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    projects: int = 0
    commits: int = 0
    branches: int = 0
    tasks: int = 0
    issues: int = 0
    pull_requests: int = 0
    edges: int = 0

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class DataLayerHealth(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)
