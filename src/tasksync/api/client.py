"""HTTP client for the central task service REST API."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..models import (
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
from ..utils.cancel import CancelToken

logger = logging.getLogger(__name__)

# The task list endpoint caps page size; one page covers a project
TASK_LIST_LIMIT = 500


class ApiError(Exception):
    """Base exception for central API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiAuthError(ApiError):
    """Authentication or authorization failed."""

    pass


class ApiNotFoundError(ApiError):
    """Resource not found."""

    pass


class ApiRequestError(ApiError):
    """The request could not be sent or the response could not be read."""

    pass


class ApiClient:
    """Client for the central task service.

    Provides a thin wrapper around the REST API with:
    - Optional API key authentication
    - Typed errors for auth failures and missing resources
    - Cancellation checks before every request
    """

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 30.0):
        """Initialize the API client.

        Args:
            base_url: Service root URL, e.g. "http://localhost:8000"
            api_key: Optional API key sent as a bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(base_url=self.base_url, headers=headers, timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        cancel: CancelToken,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a request and return the decoded JSON body.

        Raises:
            SyncCancelledError: The run was cancelled
            ApiAuthError: 401 or 403
            ApiNotFoundError: 404
            ApiRequestError: Transport failure or undecodable body
            ApiError: Any other HTTP error
        """
        cancel.raise_if_cancelled()

        logger.debug("%s %s: params=%s", method, path, params)

        start_time = time.monotonic()
        try:
            response = self._client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, path, elapsed_ms, e)
            raise ApiRequestError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status in (401, 403):
            logger.error("%s %s: %d Unauthorized (%.0fms)", method, path, status, elapsed_ms)
            raise ApiAuthError(f"HTTP {status}: {response.text}", status)
        if status == 404:
            logger.error("%s %s: 404 Not Found (%.0fms)", method, path, elapsed_ms)
            raise ApiNotFoundError(f"HTTP 404: {response.text}", status)
        if status >= 400:
            logger.error("%s %s: HTTP %d (%.0fms)", method, path, status, elapsed_ms)
            raise ApiError(f"HTTP {status}: {response.text}", status)

        logger.info("%s %s: %d (%.0fms)", method, path, status, elapsed_ms)

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiRequestError(f"failed to decode response: {e}") from e

    # --- Systems ---

    def list_systems(self, cancel: CancelToken) -> list[System]:
        data = self.request(cancel, "GET", "/api/v1/systems/")
        return [System.model_validate(item) for item in data or []]

    def get_system(self, cancel: CancelToken, system_id: int) -> System:
        data = self.request(cancel, "GET", f"/api/v1/systems/{system_id}")
        return System.model_validate(data)

    # --- Projects ---

    def list_projects(self, cancel: CancelToken, system_id: int | None = None) -> list[Project]:
        params = {"system_id": system_id} if system_id is not None else None
        data = self.request(cancel, "GET", "/api/v1/projects/", params=params)
        return [Project.model_validate(item) for item in data or []]

    def get_project(self, cancel: CancelToken, project_id: int) -> Project:
        data = self.request(cancel, "GET", f"/api/v1/projects/{project_id}")
        return Project.model_validate(data)

    def update_project(
        self, cancel: CancelToken, project_id: int, update: ProjectUpdate
    ) -> Project:
        data = self.request(
            cancel, "PUT", f"/api/v1/projects/{project_id}", json=update.to_payload()
        )
        return Project.model_validate(data)

    # --- Tasks ---

    def list_tasks(self, cancel: CancelToken, project_id: int | None = None) -> list[Task]:
        """List tasks, optionally for one project.

        The endpoint answers with a ``{items, total, skip, limit}`` envelope.
        """
        params: dict[str, Any] = {"limit": TASK_LIST_LIMIT}
        if project_id is not None:
            params["project_id"] = project_id
        data = self.request(cancel, "GET", "/api/v1/tasks/", params=params)
        items = data.get("items", []) if isinstance(data, dict) else data
        return [Task.model_validate(item) for item in items or []]

    def get_task(self, cancel: CancelToken, task_id: int) -> Task:
        data = self.request(cancel, "GET", f"/api/v1/tasks/{task_id}")
        return Task.model_validate(data)

    def create_task(self, cancel: CancelToken, task: TaskCreate) -> Task:
        data = self.request(cancel, "POST", "/api/v1/tasks/", json=task.to_payload())
        return Task.model_validate(data)

    def update_task(self, cancel: CancelToken, task_id: int, update: TaskUpdate) -> Task:
        data = self.request(cancel, "PUT", f"/api/v1/tasks/{task_id}", json=update.to_payload())
        return Task.model_validate(data)

    # --- Comments ---

    def list_comments(self, cancel: CancelToken, task_id: int) -> list[Comment]:
        data = self.request(cancel, "GET", f"/api/v1/tasks/{task_id}/comments")
        return [Comment.model_validate(item) for item in data or []]

    def create_comment(self, cancel: CancelToken, comment: CommentCreate) -> Comment:
        if comment.task_id is None:
            raise ValueError("comment.task_id is required")
        data = self.request(
            cancel,
            "POST",
            f"/api/v1/tasks/{comment.task_id}/comments",
            json=comment.to_payload(),
        )
        return Comment.model_validate(data)

    def update_comment(
        self, cancel: CancelToken, comment_id: int, update: CommentUpdate
    ) -> Comment:
        data = self.request(
            cancel, "PUT", f"/api/v1/comments/{comment_id}", json=update.to_payload()
        )
        return Comment.model_validate(data)
