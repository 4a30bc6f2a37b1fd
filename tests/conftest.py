"""Shared fixtures: an in-memory central service and a memory-backed registry."""

import pytest

from tasksync.api.client import ApiNotFoundError
from tasksync.models import (
    Comment,
    CommentCreate,
    CommentUpdate,
    Project,
    ProjectUpdate,
    System,
    Task,
    TaskCreate,
    TaskUpdate,
)
from tasksync.plugin.memory import MemoryPlugin, MemoryState
from tasksync.plugin.registry import PluginRegistry
from tasksync.utils.cancel import CancelToken
from tasksync.utils.datetime import now_utc

# Fields whose change bumps updated_at in the central service
_CONTENT_FIELDS = ("title", "description", "status", "priority", "due_date", "labels", "assignees")


class FakeApi:
    """In-memory stand-in for ApiClient with the same method signatures."""

    MUTATING = ("create_task", "update_task", "create_comment", "update_comment", "update_project")

    def __init__(self):
        self.systems: dict[int, System] = {}
        self.projects: dict[int, Project] = {}
        self.tasks: dict[int, Task] = {}
        self.comments: dict[int, Comment] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self._next_id = 100

    # --- Test helpers ---

    def add_system(self, system: System) -> System:
        self.systems[system.id] = system
        return system

    def add_project(self, project: Project) -> Project:
        self.projects[project.id] = project
        return project

    def add_task(self, task: Task) -> Task:
        self.tasks[task.id] = task
        return task

    def add_comment(self, comment: Comment) -> Comment:
        self.comments[comment.id] = comment
        return comment

    def fail(self, operation: str, error: Exception) -> None:
        self.errors[operation] = error

    def mutating_calls(self) -> list[str]:
        return [call for call in self.calls if call in self.MUTATING]

    def task_by_external_id(self, external_id: str) -> Task | None:
        for task in self.tasks.values():
            if task.external_id == external_id:
                return task
        return None

    def comments_for(self, task_id: int) -> list[Comment]:
        return [c for c in self.comments.values() if c.task_id == task_id]

    def _enter(self, cancel: CancelToken, operation: str) -> None:
        cancel.raise_if_cancelled()
        self.calls.append(operation)
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # --- ApiClient surface ---

    def get_system(self, cancel, system_id):
        self._enter(cancel, "get_system")
        if system_id not in self.systems:
            raise ApiNotFoundError("HTTP 404: system not found", 404)
        return self.systems[system_id]

    def list_projects(self, cancel, system_id=None):
        self._enter(cancel, "list_projects")
        return [
            p for p in self.projects.values() if system_id is None or p.system_id == system_id
        ]

    def get_project(self, cancel, project_id):
        self._enter(cancel, "get_project")
        if project_id not in self.projects:
            raise ApiNotFoundError("HTTP 404: project not found", 404)
        return self.projects[project_id]

    def update_project(self, cancel, project_id, update: ProjectUpdate):
        self._enter(cancel, "update_project")
        changes = {k: v for k, v in update.model_dump().items() if v is not None}
        self.projects[project_id] = self.projects[project_id].model_copy(update=changes)
        return self.projects[project_id]

    def list_tasks(self, cancel, project_id=None):
        self._enter(cancel, "list_tasks")
        return [
            t.model_copy()
            for t in self.tasks.values()
            if project_id is None or t.project_id == project_id
        ]

    def get_task(self, cancel, task_id):
        self._enter(cancel, "get_task")
        if task_id not in self.tasks:
            raise ApiNotFoundError("HTTP 404: task not found", 404)
        return self.tasks[task_id].model_copy()

    def create_task(self, cancel, task: TaskCreate):
        self._enter(cancel, "create_task")
        created = Task(
            id=self._new_id(),
            **task.model_dump(exclude={"labels", "assignees"}),
        )
        created = TaskUpdate(labels=task.labels, assignees=task.assignees).apply_to(created)
        self.tasks[created.id] = created
        return created.model_copy()

    def update_task(self, cancel, task_id, update: TaskUpdate):
        self._enter(cancel, "update_task")
        if task_id not in self.tasks:
            raise ApiNotFoundError("HTTP 404: task not found", 404)
        updated = update.apply_to(self.tasks[task_id])
        if any(getattr(update, name) is not None for name in _CONTENT_FIELDS):
            updated = updated.model_copy(update={"updated_at": now_utc()})
        self.tasks[task_id] = updated
        return updated.model_copy()

    def list_comments(self, cancel, task_id):
        self._enter(cancel, "list_comments")
        return [c.model_copy() for c in self.comments_for(task_id)]

    def create_comment(self, cancel, comment: CommentCreate):
        self._enter(cancel, "create_comment")
        created = Comment(id=self._new_id(), **comment.model_dump())
        self.comments[created.id] = created
        return created.model_copy()

    def update_comment(self, cancel, comment_id, update: CommentUpdate):
        self._enter(cancel, "update_comment")
        changes = {k: v for k, v in update.model_dump().items() if v is not None}
        self.comments[comment_id] = self.comments[comment_id].model_copy(update=changes)
        return self.comments[comment_id].model_copy()


@pytest.fixture
def make_api():
    """Factory for fresh central services with one system (id=1)."""

    def factory(identifier="memory"):
        fake = FakeApi()
        fake.add_system(System(id=1, identifier=identifier, name=identifier.title()))
        return fake

    return factory


@pytest.fixture
def api(make_api):
    """Central service with one "memory" system (id=1)."""
    return make_api()


@pytest.fixture
def state():
    """Storage behind the memory plugin."""
    return MemoryState()


@pytest.fixture
def registry(state):
    """Registry whose "memory" plugin shares the `state` fixture."""
    reg = PluginRegistry()
    reg.register("memory", lambda: MemoryPlugin(state))
    return reg


@pytest.fixture
def plugin_config():
    """Plugin config loader that satisfies the memory plugin."""
    return lambda identifier: {"token": "test-token"}


@pytest.fixture
def cancel():
    return CancelToken()
