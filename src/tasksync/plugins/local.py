"""No-op plugin for projects that only live in the central service.

Fetches return nothing and mutations are not supported, so a push counts
every task as skipped and a pull finds nothing to import.
"""

from datetime import datetime

from ..models import Comment, CommentCreate, Project, Task, TaskCreate, TaskUpdate
from ..plugin.errors import NotFoundError, NotSupportedError
from ..utils.cancel import CancelToken


class LocalPlugin:
    """Plugin for local-only projects. Needs no configuration."""

    name = "local"
    version = "1.0.0"

    def __init__(self) -> None:
        self._config: dict[str, str] = {}

    def configure(self, config: dict[str, str]) -> None:
        self._config = dict(config)

    def validate_config(self) -> None:
        return None

    def fetch_projects(self, cancel: CancelToken) -> list[Project]:
        return []

    def fetch_project(self, cancel: CancelToken, external_id: str) -> Project:
        raise NotFoundError("local projects are not fetched from external systems")

    def fetch_tasks(
        self,
        cancel: CancelToken,
        project_external_id: str | None = None,
        since: datetime | None = None,
    ) -> list[Task]:
        return []

    def fetch_task(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> Task:
        raise NotFoundError("local tasks are not fetched from external systems")

    def create_task(
        self, cancel: CancelToken, project_external_id: str | None, task: TaskCreate
    ) -> Task:
        raise NotSupportedError("local projects do not sync tasks")

    def update_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        task: TaskUpdate,
    ) -> Task:
        raise NotSupportedError("local projects do not sync tasks")

    def fetch_comments(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> list[Comment]:
        raise NotSupportedError("local projects do not sync comments")

    def create_comment(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        comment: CommentCreate,
    ) -> Comment:
        raise NotSupportedError("local projects do not sync comments")
