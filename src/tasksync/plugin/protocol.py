"""Plugin protocol for external task-tracking systems."""

from datetime import datetime
from typing import Protocol

from ..models import Comment, CommentCreate, Project, Task, TaskCreate, TaskUpdate
from ..utils.cancel import CancelToken


class PluginProtocol(Protocol):
    """Interface for external system integrations.

    A plugin bridges the central service and one external system (GitHub,
    a directory of markdown files, ...). The sync engine only talks to
    external systems through this contract.

    External ids:
    - For projects, the identifier of the resource in the external system
      (e.g. "owner/repo" for GitHub).
    - For tasks and comments, the identifier assigned by the external system.

    Optional operations raise NotSupportedError. Lookups of unknown resources
    raise NotFoundError. Every method that talks to the external system takes
    the run's CancelToken first and must check it before blocking.

    Plugins that hold resources may also define `close()`; the engine calls it
    once it is done with a project.
    """

    @property
    def name(self) -> str:
        """Stable lowercase identifier, e.g. "github"."""
        ...

    @property
    def version(self) -> str:
        """Plugin version string."""
        ...

    def configure(self, config: dict[str, str]) -> None:
        """Store configuration for later calls.

        Raises:
            PluginError: If the configuration is unusable.
        """
        ...

    def validate_config(self) -> None:
        """Check that required configuration is present.

        Raises:
            NotConfiguredError: If required settings are missing.
        """
        ...

    def fetch_projects(self, cancel: CancelToken) -> list[Project]:
        """Fetch all projects visible to the plugin."""
        ...

    def fetch_project(self, cancel: CancelToken, external_id: str) -> Project:
        """Fetch one project by external id.

        Raises:
            NotFoundError: If the project does not exist.
        """
        ...

    def fetch_tasks(
        self,
        cancel: CancelToken,
        project_external_id: str | None = None,
        since: datetime | None = None,
    ) -> list[Task]:
        """Fetch tasks, optionally limited to a project and to recent changes."""
        ...

    def fetch_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
    ) -> Task:
        """Fetch one task by external id.

        Raises:
            NotFoundError: If the task does not exist.
        """
        ...

    def create_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task: TaskCreate,
    ) -> Task:
        """Create a task and return it with its external id set.

        Raises:
            NotSupportedError: If the system is read-only.
        """
        ...

    def update_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        task: TaskUpdate,
    ) -> Task:
        """Apply a partial update to a task.

        Raises:
            NotSupportedError: If the system is read-only.
            NotFoundError: If the task does not exist.
        """
        ...

    def fetch_comments(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
    ) -> list[Comment]:
        """Fetch all comments of a task.

        Raises:
            NotSupportedError: If the system has no comments.
            NotFoundError: If the task does not exist.
        """
        ...

    def create_comment(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        comment: CommentCreate,
    ) -> Comment:
        """Create a comment and return it with its external id set.

        Raises:
            NotSupportedError: If the system has no comments.
            NotFoundError: If the task does not exist.
        """
        ...
