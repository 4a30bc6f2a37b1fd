"""Comment domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from ..utils.datetime import now_utc


class Comment(BaseModel):
    """A comment on a task.

    Comments are immutable once created; sync only ever creates them and
    records the external id assigned by the other side.
    """

    id: int = 0
    task_id: int | None = None  # None for journal entries, never synced
    external_id: str = ""
    content: str
    author: str = ""
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class CommentCreate(BaseModel):
    """Payload for creating a comment."""

    task_id: int | None = None
    external_id: str = ""
    content: str
    author: str = ""

    def to_payload(self) -> dict:
        """Serialize for the wire."""
        return self.model_dump(mode="json", exclude_none=True)


class CommentUpdate(BaseModel):
    """Partial update for a comment."""

    external_id: str | None = None
    content: str | None = None

    def to_payload(self) -> dict:
        """Serialize for the wire, omitting unchanged fields."""
        return self.model_dump(mode="json", exclude_none=True)
