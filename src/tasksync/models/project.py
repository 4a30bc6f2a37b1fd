"""Project and external system models."""

from datetime import datetime

from pydantic import BaseModel, Field

from ..utils.datetime import now_utc


class Project(BaseModel):
    """A project in the central service, linked to one external system."""

    id: int = 0
    name: str
    description: str | None = None
    system_id: int = 0
    external_id: str = ""
    status: str = "active"
    priority: str | None = None
    sync_strategy: str = "pull"  # "pull", "push", or "bidirectional"
    last_synced_at: datetime | None = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class ProjectUpdate(BaseModel):
    """Partial update for a project."""

    name: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    sync_strategy: str | None = None
    last_synced_at: datetime | None = None

    def to_payload(self) -> dict:
        """Serialize for the wire, omitting unchanged fields."""
        return self.model_dump(mode="json", exclude_none=True)


class System(BaseModel):
    """An external task-tracking system.

    `identifier` selects the plugin used to talk to the system (e.g. "github").
    """

    id: int = 0
    identifier: str
    name: str = ""
    url: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
