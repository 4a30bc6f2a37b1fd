"""Data models."""

from .comment import Comment, CommentCreate, CommentUpdate
from .project import Project, ProjectUpdate, System
from .sync import ProjectResult, Strategy, SyncOptions, SyncResult
from .task import (
    CLOSED_STATUSES,
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_DONE,
    Assignee,
    Label,
    Task,
    TaskCreate,
    TaskUpdate,
)

__all__ = [
    "CLOSED_STATUSES",
    "STATUS_ACTIVE",
    "STATUS_CANCELED",
    "STATUS_DONE",
    "Assignee",
    "Comment",
    "CommentCreate",
    "CommentUpdate",
    "Label",
    "Project",
    "ProjectResult",
    "ProjectUpdate",
    "Strategy",
    "SyncOptions",
    "SyncResult",
    "System",
    "Task",
    "TaskCreate",
    "TaskUpdate",
]
