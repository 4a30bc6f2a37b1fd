"""Plugin syncing with GitHub issues over the REST API.

Projects are repositories, identified by ``owner/repo``. Tasks are issues,
identified by their issue number. Pull requests returned by the issues
endpoint are skipped.

Issue state maps to task status::

    open                              -> active
    closed (state_reason=completed)   -> done
    closed (state_reason=not_planned) -> canceled

Priority is carried as a ``priority:<level>`` label.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

import httpx

from ..models import (
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_DONE,
    Assignee,
    Comment,
    CommentCreate,
    Label,
    Project,
    Task,
    TaskCreate,
    TaskUpdate,
)
from ..plugin.errors import NotConfiguredError, NotFoundError, UnauthorizedError
from ..utils.cancel import CancelToken
from ..utils.datetime import from_iso, to_iso

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
PRIORITY_LABEL_PREFIX = "priority:"
PAGE_SIZE = 100


class GitHubError(Exception):
    """A GitHub request failed for a reason without a plugin error kind."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubPlugin:
    """Plugin for GitHub repositories and issues.

    Required configuration:
        token: Personal access token with ``repo`` scope

    Optional configuration:
        url: API root, for GitHub Enterprise (default: https://api.github.com)
    """

    name = "github"
    version = "1.0.0"

    def __init__(self) -> None:
        self._config: dict[str, str] = {}
        self._client: httpx.Client | None = None

    def configure(self, config: dict[str, str]) -> None:
        self._config = dict(config)
        if self._client is not None:
            self._client.close()
            self._client = None
        token = self._config.get("token")
        if token:
            self._client = httpx.Client(
                base_url=self._config.get("url") or DEFAULT_API_URL,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/vnd.github+json",
                },
                timeout=30.0,
            )

    def validate_config(self) -> None:
        if not self._config.get("token"):
            raise NotConfiguredError("missing required 'token' configuration")

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    # --- Projects ---

    def fetch_projects(self, cancel: CancelToken) -> list[Project]:
        repos = self._paginate(cancel, "/user/repos", {"sort": "full_name"})
        return [_project_from_repo(repo) for repo in repos]

    def fetch_project(self, cancel: CancelToken, external_id: str) -> Project:
        repo = self._request(cancel, "GET", f"/repos/{_repo_path(external_id)}")
        return _project_from_repo(repo)

    # --- Tasks ---

    def fetch_tasks(
        self,
        cancel: CancelToken,
        project_external_id: str | None = None,
        since: datetime | None = None,
    ) -> list[Task]:
        params: dict[str, Any] = {"state": "all"}
        if since is not None:
            params["since"] = to_iso(since)
        issues = self._paginate(
            cancel, f"/repos/{_repo_path(project_external_id)}/issues", params
        )
        return [_task_from_issue(issue) for issue in issues if "pull_request" not in issue]

    def fetch_task(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> Task:
        issue = self._request(
            cancel,
            "GET",
            f"/repos/{_repo_path(project_external_id)}/issues/{task_external_id}",
        )
        if "pull_request" in issue:
            raise NotFoundError(f"#{task_external_id} is a pull request")
        return _task_from_issue(issue)

    def create_task(
        self, cancel: CancelToken, project_external_id: str | None, task: TaskCreate
    ) -> Task:
        payload: dict[str, Any] = {
            "title": task.title,
            "body": task.description or "",
            "labels": _labels_with_priority(task.labels, task.priority),
            "assignees": list(task.assignees),
        }
        issue = self._request(
            cancel, "POST", f"/repos/{_repo_path(project_external_id)}/issues", json=payload
        )
        logger.info("Created issue %s#%s", project_external_id, issue.get("number"))
        return _task_from_issue(issue)

    def update_task(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        task: TaskUpdate,
    ) -> Task:
        payload: dict[str, Any] = {}
        if task.title is not None:
            payload["title"] = task.title
        if task.description is not None:
            payload["body"] = task.description
        if task.status is not None:
            payload.update(_state_for_status(task.status))
        if task.labels is not None:
            payload["labels"] = _labels_with_priority(task.labels, task.priority)
        if task.assignees is not None:
            payload["assignees"] = list(task.assignees)

        issue = self._request(
            cancel,
            "PATCH",
            f"/repos/{_repo_path(project_external_id)}/issues/{task_external_id}",
            json=payload,
        )
        logger.info("Updated issue %s#%s", project_external_id, task_external_id)
        return _task_from_issue(issue)

    # --- Comments ---

    def fetch_comments(
        self, cancel: CancelToken, project_external_id: str | None, task_external_id: str
    ) -> list[Comment]:
        comments = self._paginate(
            cancel,
            f"/repos/{_repo_path(project_external_id)}/issues/{task_external_id}/comments",
            {},
        )
        return [_comment_from_github(comment) for comment in comments]

    def create_comment(
        self,
        cancel: CancelToken,
        project_external_id: str | None,
        task_external_id: str,
        comment: CommentCreate,
    ) -> Comment:
        data = self._request(
            cancel,
            "POST",
            f"/repos/{_repo_path(project_external_id)}/issues/{task_external_id}/comments",
            json={"body": comment.content},
        )
        return _comment_from_github(data)

    # --- Private Methods ---

    def _request(
        self,
        cancel: CancelToken,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a REST request and return the decoded JSON body.

        Raises:
            NotConfiguredError: No token configured
            UnauthorizedError: 401 or 403
            NotFoundError: 404
            GitHubError: Transport failure or any other HTTP error
        """
        cancel.raise_if_cancelled()
        if self._client is None:
            raise NotConfiguredError("missing required 'token' configuration")

        logger.debug("%s %s: params=%s", method, path, params)

        start_time = time.monotonic()
        try:
            response = self._client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, path, elapsed_ms, e)
            raise GitHubError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status in (401, 403):
            logger.error("%s %s: %d Unauthorized (%.0fms)", method, path, status, elapsed_ms)
            if "rate limit" in response.text.lower():
                raise GitHubError("GitHub API rate limit exceeded. Try again later.", status)
            raise UnauthorizedError(f"GitHub rejected the token (HTTP {status})")
        if status == 404:
            logger.error("%s %s: 404 Not Found (%.0fms)", method, path, elapsed_ms)
            raise NotFoundError(path)
        if status >= 400:
            logger.error("%s %s: HTTP %d (%.0fms)", method, path, status, elapsed_ms)
            raise GitHubError(f"HTTP {status}: {response.text}", status)

        logger.debug("%s %s: %d (%.0fms)", method, path, status, elapsed_ms)

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GitHubError(f"Invalid JSON response: {e}") from e

    def _paginate(
        self, cancel: CancelToken, path: str, params: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = self._request(
                cancel, "GET", path, params={**params, "per_page": PAGE_SIZE, "page": page}
            )
            batch = batch or []
            items.extend(batch)
            if len(batch) < PAGE_SIZE:
                return items
            page += 1


def _repo_path(external_id: str | None) -> str:
    """Validate an ``owner/repo`` identifier."""
    if not external_id or external_id.count("/") != 1 or "" in external_id.split("/"):
        raise NotConfiguredError(
            f"GitHub projects need an 'owner/repo' external id, got {external_id!r}",
        )
    return external_id


def _project_from_repo(repo: dict[str, Any]) -> Project:
    return Project(
        name=repo.get("full_name") or repo.get("name") or "",
        description=repo.get("description"),
        external_id=repo.get("full_name") or "",
        status="archived" if repo.get("archived") else "active",
    )


def _task_from_issue(issue: dict[str, Any]) -> Task:
    """Convert a GitHub issue payload to a Task."""
    label_names = [label["name"] for label in issue.get("labels") or [] if label.get("name")]
    priority = None
    labels = []
    for name in label_names:
        if name.startswith(PRIORITY_LABEL_PREFIX):
            priority = name[len(PRIORITY_LABEL_PREFIX) :]
        else:
            labels.append(Label(name=name))

    if issue.get("state") == "closed":
        status = STATUS_CANCELED if issue.get("state_reason") == "not_planned" else STATUS_DONE
    else:
        status = STATUS_ACTIVE

    created = from_iso(issue["created_at"])
    return Task(
        external_id=str(issue["number"]),
        source_url=issue.get("html_url"),
        title=issue.get("title") or "",
        description=issue.get("body") or None,
        status=status,
        priority=priority,
        created_at=created,
        updated_at=from_iso(issue.get("updated_at") or issue["created_at"]),
        labels=labels,
        assignees=[
            Assignee(name=user["login"])
            for user in issue.get("assignees") or []
            if user.get("login")
        ],
    )


def _comment_from_github(comment: dict[str, Any]) -> Comment:
    created = from_iso(comment["created_at"])
    return Comment(
        external_id=str(comment["id"]),
        content=comment.get("body") or "",
        author=(comment.get("user") or {}).get("login", ""),
        created_at=created,
        updated_at=from_iso(comment.get("updated_at") or comment["created_at"]),
    )


def _labels_with_priority(labels: list[str], priority: str | None) -> list[str]:
    names = [name for name in labels if not name.startswith(PRIORITY_LABEL_PREFIX)]
    if priority:
        names.append(f"{PRIORITY_LABEL_PREFIX}{priority}")
    return names


def _state_for_status(status: str) -> dict[str, str]:
    if status == STATUS_DONE:
        return {"state": "closed", "state_reason": "completed"}
    if status == STATUS_CANCELED:
        return {"state": "closed", "state_reason": "not_planned"}
    return {"state": "open"}
