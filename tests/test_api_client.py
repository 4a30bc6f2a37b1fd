"""Tests for the central service API client."""

from unittest.mock import patch

import httpx
import pytest

from tasksync.api.client import (
    ApiAuthError,
    ApiClient,
    ApiError,
    ApiNotFoundError,
    ApiRequestError,
)
from tasksync.models import CommentCreate, CommentUpdate, ProjectUpdate, TaskCreate, TaskUpdate
from tasksync.utils.cancel import CancelToken, SyncCancelledError

TASK_JSON = {
    "id": 5,
    "external_id": "42",
    "title": "Fix login",
    "project_id": 1,
    "status": "active",
    "created_at": "2025-01-15T10:00:00Z",
    "updated_at": "2025-01-15T10:30:00Z",
    "labels": [{"id": 1, "name": "bug"}],
    "assignees": [],
}


@pytest.fixture
def client():
    """Create a test client."""
    client = ApiClient("http://localhost:8000/", api_key="secret")
    yield client
    client.close()


def _respond(client, status_code=200, json=None, content=None):
    if json is not None:
        response = httpx.Response(status_code, json=json)
    else:
        response = httpx.Response(status_code, content=content or b"")
    return patch.object(client._client, "request", return_value=response)


class TestApiClientInit:
    """Tests for ApiClient initialization."""

    def test_base_url_normalized(self, client):
        assert client.base_url == "http://localhost:8000"

    def test_bearer_header(self, client):
        assert client._client.headers["Authorization"] == "Bearer secret"

    def test_no_key_no_header(self):
        with ApiClient("http://localhost:8000") as client:
            assert "Authorization" not in client._client.headers


class TestApiClientRequest:
    """Tests for request error mapping."""

    def test_success(self, client, cancel):
        with _respond(client, json={"ok": True}) as mock_request:
            assert client.request(cancel, "GET", "/api/v1/ping") == {"ok": True}
        mock_request.assert_called_once_with("GET", "/api/v1/ping", json=None, params=None)

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, client, cancel, status):
        with _respond(client, status, content=b"denied"), pytest.raises(ApiAuthError) as exc_info:
            client.request(cancel, "GET", "/api/v1/projects/")
        assert exc_info.value.status_code == status

    def test_not_found(self, client, cancel):
        with _respond(client, 404, content=b"nope"), pytest.raises(ApiNotFoundError):
            client.request(cancel, "GET", "/api/v1/projects/9")

    def test_server_error(self, client, cancel):
        with _respond(client, 500, content=b"oops"), pytest.raises(ApiError) as exc_info:
            client.request(cancel, "GET", "/api/v1/projects/")
        assert exc_info.value.status_code == 500
        assert "oops" in str(exc_info.value)

    def test_transport_error(self, client, cancel):
        with (
            patch.object(client._client, "request", side_effect=httpx.ConnectError("refused")),
            pytest.raises(ApiRequestError, match="refused"),
        ):
            client.request(cancel, "GET", "/api/v1/projects/")

    def test_empty_body(self, client, cancel):
        with _respond(client, 204):
            assert client.request(cancel, "DELETE", "/api/v1/tasks/1") is None

    def test_invalid_json(self, client, cancel):
        with _respond(client, 200, content=b"<html>"), pytest.raises(ApiRequestError):
            client.request(cancel, "GET", "/api/v1/projects/")

    def test_cancelled_before_sending(self, client):
        cancel = CancelToken()
        cancel.cancel()
        with patch.object(client._client, "request") as mock_request:
            with pytest.raises(SyncCancelledError):
                client.request(cancel, "GET", "/api/v1/projects/")
            mock_request.assert_not_called()


class TestApiClientEndpoints:
    """Tests for the typed endpoint methods."""

    def test_list_projects_by_system(self, client, cancel):
        with _respond(client, json=[{"id": 1, "name": "Website", "system_id": 2}]) as mock_request:
            projects = client.list_projects(cancel, system_id=2)
        assert projects[0].name == "Website"
        mock_request.assert_called_once_with(
            "GET", "/api/v1/projects/", json=None, params={"system_id": 2}
        )

    def test_get_system(self, client, cancel):
        with _respond(client, json={"id": 2, "identifier": "github"}):
            assert client.get_system(cancel, 2).identifier == "github"

    def test_update_project(self, client, cancel):
        with _respond(client, json={"id": 1, "name": "Website"}) as mock_request:
            client.update_project(cancel, 1, ProjectUpdate(sync_strategy="push"))
        mock_request.assert_called_once_with(
            "PUT", "/api/v1/projects/1", json={"sync_strategy": "push"}, params=None
        )

    def test_list_tasks_envelope(self, client, cancel):
        """The task list answers with an items envelope."""
        body = {"items": [TASK_JSON], "total": 1, "skip": 0, "limit": 500}
        with _respond(client, json=body) as mock_request:
            tasks = client.list_tasks(cancel, project_id=1)
        assert [t.external_id for t in tasks] == ["42"]
        assert tasks[0].label_names() == ["bug"]
        mock_request.assert_called_once_with(
            "GET", "/api/v1/tasks/", json=None, params={"limit": 500, "project_id": 1}
        )

    def test_list_tasks_plain_list(self, client, cancel):
        with _respond(client, json=[TASK_JSON]):
            assert len(client.list_tasks(cancel)) == 1

    def test_create_task(self, client, cancel):
        with _respond(client, 201, json=TASK_JSON) as mock_request:
            task = client.create_task(cancel, TaskCreate(title="Fix login", project_id=1))
        assert task.id == 5
        _, kwargs = mock_request.call_args
        assert kwargs["json"]["title"] == "Fix login"
        assert "description" not in kwargs["json"]

    def test_update_task(self, client, cancel):
        with _respond(client, json=TASK_JSON) as mock_request:
            client.update_task(cancel, 5, TaskUpdate(external_id="42"))
        mock_request.assert_called_once_with(
            "PUT", "/api/v1/tasks/5", json={"external_id": "42"}, params=None
        )

    def test_comments(self, client, cancel):
        comment = {"id": 9, "task_id": 5, "content": "Hi", "external_id": ""}
        with _respond(client, json=[comment]) as mock_request:
            assert client.list_comments(cancel, 5)[0].content == "Hi"
        assert mock_request.call_args.args == ("GET", "/api/v1/tasks/5/comments")

        with _respond(client, 201, json=comment) as mock_request:
            client.create_comment(cancel, CommentCreate(task_id=5, content="Hi"))
        assert mock_request.call_args.args == ("POST", "/api/v1/tasks/5/comments")

        with _respond(client, json=comment) as mock_request:
            client.update_comment(cancel, 9, CommentUpdate(external_id="c-1"))
        assert mock_request.call_args.args == ("PUT", "/api/v1/comments/9")

    def test_create_comment_requires_task(self, client, cancel):
        with pytest.raises(ValueError):
            client.create_comment(cancel, CommentCreate(content="orphan"))
