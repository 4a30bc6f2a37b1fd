"""Plugin syncing with a directory of markdown task files.

Each project is a sub-directory of the configured ``path``; each task is a
``.md`` file with YAML front matter, and the file stem is the task's
external id::

    <path>/
        website/
            fix-login-bug.md
            update-docs.md

A task file looks like::

    ---
    title: Fix login bug
    status: active
    priority: high
    labels: [bug]
    updated: 2025-01-15T10:30:00+00:00
    comments:
      - id: c1
        author: alice
        content: Reproduced on staging
    ---
    Users cannot log in with SSO.

The body is the task description. Comments live in the ``comments`` list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import frontmatter
from pydantic import ValidationError

from ..models import (
    Assignee,
    Comment,
    CommentCreate,
    Label,
    Project,
    Task,
    TaskCreate,
    TaskUpdate,
)
from ..plugin.errors import NotConfiguredError, NotFoundError
from ..utils.cancel import CancelToken
from ..utils.datetime import from_iso, now_utc
from ..utils.slug import unique_slug

logger = logging.getLogger(__name__)

# Project used when the engine passes no project external id
DEFAULT_PROJECT = "default"


class MarkdownPlugin:
    """Plugin storing tasks as markdown files with front matter.

    Required configuration:
        path: Root directory holding one sub-directory per project
    """

    name = "markdown"
    version = "1.0.0"

    def __init__(self) -> None:
        self._config: dict[str, str] = {}
        self.root: Path | None = None

    def configure(self, config: dict[str, str]) -> None:
        self._config = dict(config)
        path = self._config.get("path")
        self.root = Path(path).expanduser() if path else None

    def validate_config(self) -> None:
        if self.root is None:
            raise NotConfiguredError("missing required 'path' configuration")
        if self.root.exists() and not self.root.is_dir():
            raise NotConfiguredError(f"'path' is not a directory: {self.root}")

    # --- Projects ---

    def fetch_projects(self, cancel: CancelToken) -> list[Project]:
        cancel.raise_if_cancelled()
        root = self._require_root()
        if not root.exists():
            return []
        return [
            Project(name=child.name, external_id=child.name)
            for child in sorted(root.iterdir())
            if child.is_dir()
        ]

    def fetch_project(self, cancel: CancelToken, external_id: str) -> Project:
        cancel.raise_if_cancelled()
        directory = self._require_root() / external_id
        if not directory.is_dir():
            raise NotFoundError(f"project {external_id} not found")
        return Project(name=external_id, external_id=external_id)

    # --- Tasks ---

    def fetch_tasks(
        self,
        cancel: CancelToken,
        project_external_id: str | None = None,
        since: datetime | None = None,
    ) -> list[Task]:
        tasks: list[Task] = []
        for filepath in self._iter_task_files(project_external_id):
            cancel.raise_if_cancelled()
            task = self._parse_task_file(filepath)
            if task is None:
                continue
            if since is not None and task.updated_at < since:
                continue
            tasks.append(task)
        return tasks

    def fetch_task(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> Task:
        cancel.raise_if_cancelled()
        filepath = self._task_path(project_external_id, task_external_id)
        task = self._parse_task_file(filepath) if filepath.exists() else None
        if task is None:
            raise NotFoundError(f"task {task_external_id} not found")
        return task

    def create_task(
        self, cancel: CancelToken, project_external_id: str | None, task: TaskCreate
    ) -> Task:
        cancel.raise_if_cancelled()
        directory = self._project_dir(project_external_id)
        directory.mkdir(parents=True, exist_ok=True)

        taken = {path.stem for path in directory.glob("*.md")}
        external_id = unique_slug(task.title, taken)
        now = now_utc()

        metadata: dict[str, Any] = {
            "title": task.title,
            "status": task.status,
            "priority": task.priority,
            "due_date": task.due_date.isoformat() if task.due_date else None,
            "labels": list(task.labels),
            "assignees": list(task.assignees),
            "created": now.isoformat(),
            "updated": now.isoformat(),
        }
        filepath = directory / f"{external_id}.md"
        self._write(filepath, metadata, task.description or "")
        logger.info("Created task file: %s", filepath)

        created = self._parse_task_file(filepath)
        if created is None:
            raise OSError(f"could not read back {filepath}")
        return created

    def update_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        task: TaskUpdate,
    ) -> Task:
        cancel.raise_if_cancelled()
        filepath = self._task_path(project_external_id, task_external_id)
        if not filepath.exists():
            raise NotFoundError(f"task {task_external_id} not found")

        post = frontmatter.load(filepath)
        metadata = dict(post.metadata)
        body = post.content

        if task.title is not None:
            metadata["title"] = task.title
        if task.description is not None:
            body = task.description
        if task.status is not None:
            metadata["status"] = task.status
        if task.priority is not None:
            metadata["priority"] = task.priority
        if task.due_date is not None:
            metadata["due_date"] = task.due_date.isoformat()
        if task.labels is not None:
            metadata["labels"] = list(task.labels)
        if task.assignees is not None:
            metadata["assignees"] = list(task.assignees)
        metadata["updated"] = now_utc().isoformat()

        self._write(filepath, metadata, body)
        logger.info("Updated task file: %s", filepath)

        updated = self._parse_task_file(filepath)
        if updated is None:
            raise OSError(f"could not read back {filepath}")
        return updated

    # --- Comments ---

    def fetch_comments(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> list[Comment]:
        cancel.raise_if_cancelled()
        filepath = self._task_path(project_external_id, task_external_id)
        if not filepath.exists():
            raise NotFoundError(f"task {task_external_id} not found")
        post = frontmatter.load(filepath)
        return [_comment_from_metadata(entry) for entry in post.metadata.get("comments") or []]

    def create_comment(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        comment: CommentCreate,
    ) -> Comment:
        cancel.raise_if_cancelled()
        filepath = self._task_path(project_external_id, task_external_id)
        if not filepath.exists():
            raise NotFoundError(f"task {task_external_id} not found")

        post = frontmatter.load(filepath)
        metadata = dict(post.metadata)
        comments = list(metadata.get("comments") or [])
        entry = {
            "id": f"c{len(comments) + 1}",
            "author": comment.author,
            "content": comment.content,
            "created": now_utc().isoformat(),
        }
        comments.append(entry)
        metadata["comments"] = comments

        # Comments do not bump the task's updated timestamp
        self._write(filepath, metadata, post.content)
        return _comment_from_metadata(entry)

    # --- Private Methods ---

    def _require_root(self) -> Path:
        if self.root is None:
            raise NotConfiguredError("missing required 'path' configuration")
        return self.root

    def _project_dir(self, project_external_id: str | None) -> Path:
        return self._require_root() / (project_external_id or DEFAULT_PROJECT)

    def _task_path(self, project_external_id: str | None, task_external_id: str) -> Path:
        return self._project_dir(project_external_id) / f"{task_external_id}.md"

    def _iter_task_files(self, project_external_id: str | None) -> Iterator[Path]:
        """Iterate over task files of one project, or of every project."""
        root = self._require_root()
        if project_external_id is not None:
            directory = root / project_external_id
            if directory.is_dir():
                yield from sorted(directory.glob("*.md"))
            return
        if root.exists():
            yield from sorted(root.glob("*/*.md"))

    def _parse_task_file(self, filepath: Path) -> Task | None:
        """Parse a single task file, or None if it is unreadable."""
        try:
            post = frontmatter.load(filepath)
        except Exception as e:
            logger.warning("Skipping unreadable task file %s: %s", filepath, e)
            return None

        metadata = post.metadata
        try:
            modified = datetime.fromtimestamp(filepath.stat().st_mtime, UTC)
            updated = _parse_datetime(metadata.get("updated")) or modified
            priority = metadata.get("priority")

            return Task(
                external_id=filepath.stem,
                source_url=filepath.resolve().as_uri(),
                title=str(metadata.get("title") or filepath.stem.replace("-", " ").title()),
                description=post.content or None,
                status=str(metadata.get("status") or "active"),
                priority=str(priority) if priority is not None else None,
                due_date=_parse_datetime(metadata.get("due_date")),
                created_at=_parse_datetime(metadata.get("created")) or updated,
                updated_at=updated,
                labels=[Label(name=str(name)) for name in metadata.get("labels") or []],
                assignees=[Assignee(name=str(name)) for name in metadata.get("assignees") or []],
            )
        except (TypeError, ValueError, ValidationError) as e:
            # Invalid field values skip the file
            logger.warning("Skipping invalid task file %s: %s", filepath, e)
            return None

    def _write(self, filepath: Path, metadata: dict[str, Any], body: str) -> None:
        post = frontmatter.Post(body)
        post.metadata = {key: value for key, value in metadata.items() if value is not None}
        with filepath.open("w") as f:
            # sort_keys=False preserves key order
            f.write(frontmatter.dumps(post, sort_keys=False))


def _comment_from_metadata(entry: dict[str, Any]) -> Comment:
    created = _parse_datetime(entry.get("created")) or now_utc()
    return Comment(
        external_id=str(entry.get("id") or ""),
        content=str(entry.get("content") or ""),
        author=str(entry.get("author") or ""),
        created_at=created,
        updated_at=created,
    )


def _parse_datetime(value: Any) -> datetime | None:
    """Parse a front matter date, datetime or ISO string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    return from_iso(str(value))
