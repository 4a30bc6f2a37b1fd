"""Task domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from ..utils.datetime import now_utc

# Status constants used by the central service
STATUS_ACTIVE = "active"
STATUS_DONE = "done"
STATUS_CANCELED = "canceled"

# Statuses that external systems usually represent as closed
CLOSED_STATUSES = (STATUS_DONE, STATUS_CANCELED)

# TaskUpdate fields copied as-is by TaskUpdate.apply_to
_SCALAR_FIELDS = (
    "external_id",
    "source_url",
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "last_pushed_at",
)


class Label(BaseModel):
    """A label attached to a task."""

    id: int | None = None
    name: str


class Assignee(BaseModel):
    """A person assigned to a task."""

    id: int | None = None
    name: str


class Task(BaseModel):
    """A task as stored in the central service or reported by a plugin.

    `external_id` links the task to its counterpart in the external system.
    An empty `external_id` means the task is not linked yet.
    """

    id: int = 0
    external_id: str = ""
    source_url: str | None = None
    title: str
    description: str | None = None
    project_id: int = 0
    status: str = STATUS_ACTIVE
    priority: str | None = None
    due_date: datetime | None = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    labels: list[Label] = Field(default_factory=list)
    assignees: list[Assignee] = Field(default_factory=list)

    # Set by the sync engine after a successful push
    last_pushed_at: datetime | None = None

    @property
    def is_linked(self) -> bool:
        """Whether the task has an external counterpart."""
        return bool(self.external_id)

    @property
    def is_closed(self) -> bool:
        """Whether the task is done or canceled."""
        return self.status in CLOSED_STATUSES

    def label_names(self) -> list[str]:
        """Label names, skipping unnamed labels."""
        return [label.name for label in self.labels if label.name]

    def assignee_names(self) -> list[str]:
        """Assignee names, skipping unnamed assignees."""
        return [assignee.name for assignee in self.assignees if assignee.name]


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    external_id: str = ""
    source_url: str | None = None
    title: str
    description: str | None = None
    project_id: int = 0
    status: str = STATUS_ACTIVE
    priority: str | None = None
    due_date: datetime | None = None
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """Serialize for the wire, omitting unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


class TaskUpdate(BaseModel):
    """Partial update for a task. Fields left as None are not changed."""

    external_id: str | None = None
    source_url: str | None = None
    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: datetime | None = None
    labels: list[str] | None = None
    assignees: list[str] | None = None
    last_pushed_at: datetime | None = None

    def to_payload(self) -> dict:
        """Serialize for the wire, omitting fields that are not being changed."""
        return self.model_dump(mode="json", exclude_none=True)

    def apply_to(self, task: Task) -> Task:
        """Return a copy of `task` with this update applied."""
        changes: dict = {}
        for name in _SCALAR_FIELDS:
            value = getattr(self, name)
            if value is not None:
                changes[name] = value
        if self.labels is not None:
            changes["labels"] = [Label(name=name) for name in self.labels]
        if self.assignees is not None:
            changes["assignees"] = [Assignee(name=name) for name in self.assignees]
        return task.model_copy(update=changes)
