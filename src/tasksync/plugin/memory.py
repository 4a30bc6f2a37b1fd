"""In-memory plugin backed by an explicit, resettable state container.

Useful for tests and for trying out sync without an external system::

    state = MemoryState()
    state.add_task(Task(external_id="task-1", title="Fix login"))
    registry.register("memory", lambda: MemoryPlugin(state))

Each test owns its MemoryState and calls `reset()` when it wants a clean
slate; nothing is shared through module globals.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from ..models import Comment, CommentCreate, Project, Task, TaskCreate, TaskUpdate
from ..utils.cancel import CancelToken
from ..utils.datetime import now_utc
from .errors import NotConfiguredError, NotFoundError

# Operations that change external state; recorded in MemoryState.calls
MUTATING_OPERATIONS = ("create_task", "update_task", "create_comment")


@dataclass
class MemoryState:
    """Storage and error injection for MemoryPlugin."""

    projects: dict[str, Project] = field(default_factory=dict)
    tasks: dict[str, Task] = field(default_factory=dict)
    task_projects: dict[str, str | None] = field(default_factory=dict)
    comments: dict[str, list[Comment]] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)  # operation -> error to raise
    calls: list[tuple[str, str]] = field(default_factory=list)  # (operation, target)
    next_task_number: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def add_project(self, external_id: str, project: Project) -> None:
        """Store a project under its external id."""
        with self.lock:
            self.projects[external_id] = project

    def add_task(self, task: Task, project_external_id: str | None = None) -> None:
        """Store a task under its external id.

        Tasks stored without a project are returned for every project.
        """
        with self.lock:
            self.tasks[task.external_id] = task
            self.task_projects[task.external_id] = project_external_id

    def add_comment(self, task_external_id: str, comment: Comment) -> None:
        """Append a comment to a task."""
        with self.lock:
            self.comments.setdefault(task_external_id, []).append(comment)

    def fail(self, operation: str, error: Exception) -> None:
        """Make the named operation raise `error` until reset."""
        self.errors[operation] = error

    def mutating_calls(self) -> list[tuple[str, str]]:
        """Recorded calls that changed state."""
        return [call for call in self.calls if call[0] in MUTATING_OPERATIONS]

    def reset(self) -> None:
        """Clear all stored data, injected errors and recorded calls."""
        with self.lock:
            self.projects.clear()
            self.tasks.clear()
            self.task_projects.clear()
            self.comments.clear()
            self.errors.clear()
            self.calls.clear()
            self.next_task_number = 0


class MemoryPlugin:
    """Plugin storing everything in a MemoryState.

    Requires a ``token`` config key so configuration handling can be
    exercised like a real plugin.
    """

    def __init__(self, state: MemoryState | None = None, name: str = "memory") -> None:
        self.state = state if state is not None else MemoryState()
        self._name = name
        self._config: dict[str, str] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return "1.0.0"

    def _next_task_id(self) -> str:
        """Next unused "task-N" id; ids are never reused."""
        while True:
            self.state.next_task_number += 1
            external_id = f"task-{self.state.next_task_number}"
            if external_id not in self.state.tasks:
                return external_id

    def _enter(self, cancel: CancelToken, operation: str, target: str = "") -> None:
        cancel.raise_if_cancelled()
        self.state.calls.append((operation, target))
        error = self.state.errors.get(operation)
        if error is not None:
            raise error

    def configure(self, config: dict[str, str]) -> None:
        error = self.state.errors.get("configure")
        if error is not None:
            raise error
        self._config = dict(config)

    def validate_config(self) -> None:
        error = self.state.errors.get("validate_config")
        if error is not None:
            raise error
        if not self._config.get("token"):
            raise NotConfiguredError("missing required 'token' configuration")

    def fetch_projects(self, cancel: CancelToken) -> list[Project]:
        self._enter(cancel, "fetch_projects")
        with self.state.lock:
            return list(self.state.projects.values())

    def fetch_project(self, cancel: CancelToken, external_id: str) -> Project:
        self._enter(cancel, "fetch_project", external_id)
        with self.state.lock:
            project = self.state.projects.get(external_id)
        if project is None:
            raise NotFoundError(f"project {external_id} not found")
        return project

    def fetch_tasks(
        self,
        cancel: CancelToken,
        project_external_id: str | None = None,
        since: datetime | None = None,
    ) -> list[Task]:
        self._enter(cancel, "fetch_tasks", project_external_id or "")
        with self.state.lock:
            tasks = []
            for external_id, task in self.state.tasks.items():
                owner = self.state.task_projects.get(external_id)
                if project_external_id is not None and owner not in (None, project_external_id):
                    continue
                if since is not None and task.updated_at < since:
                    continue
                tasks.append(task)
            return tasks

    def fetch_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
    ) -> Task:
        self._enter(cancel, "fetch_task", task_external_id)
        with self.state.lock:
            task = self.state.tasks.get(task_external_id)
        if task is None:
            raise NotFoundError(f"task {task_external_id} not found")
        return task

    def create_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task: TaskCreate,
    ) -> Task:
        self._enter(cancel, "create_task", task.title)
        with self.state.lock:
            external_id = self._next_task_id()
            number = self.state.next_task_number
            now = now_utc()
            created = Task(
                id=number,
                external_id=external_id,
                source_url=f"memory://{project_external_id or 'default'}/{external_id}",
                title=task.title,
                description=task.description,
                project_id=task.project_id,
                status=task.status,
                priority=task.priority,
                due_date=task.due_date,
                created_at=now,
                updated_at=now,
            )
            created = TaskUpdate(labels=task.labels, assignees=task.assignees).apply_to(created)
            self.state.tasks[external_id] = created
            self.state.task_projects[external_id] = project_external_id
            return created

    def update_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        task: TaskUpdate,
    ) -> Task:
        self._enter(cancel, "update_task", task_external_id)
        with self.state.lock:
            existing = self.state.tasks.get(task_external_id)
            if existing is None:
                raise NotFoundError(f"task {task_external_id} not found")
            updated = task.apply_to(existing).model_copy(update={"updated_at": now_utc()})
            self.state.tasks[task_external_id] = updated
            return updated

    def fetch_comments(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
    ) -> list[Comment]:
        self._enter(cancel, "fetch_comments", task_external_id)
        with self.state.lock:
            if task_external_id not in self.state.tasks:
                raise NotFoundError(f"task {task_external_id} not found")
            return list(self.state.comments.get(task_external_id, []))

    def create_comment(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        comment: CommentCreate,
    ) -> Comment:
        self._enter(cancel, "create_comment", task_external_id)
        with self.state.lock:
            if task_external_id not in self.state.tasks:
                raise NotFoundError(f"task {task_external_id} not found")
            existing = self.state.comments.setdefault(task_external_id, [])
            created = Comment(
                id=len(existing) + 1,
                external_id=f"{task_external_id}-comment-{len(existing) + 1}",
                content=comment.content,
                author=comment.author,
            )
            existing.append(created)
            return created
