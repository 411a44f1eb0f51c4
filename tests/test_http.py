from __future__ import annotations

import pytest
import requests

from taskboard.domain.enums import TaskStatus, UserRole
from taskboard.domain.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from taskboard.infra.brand_gateway import BrandGateway
from taskboard.infra.http import ApiClient
from taskboard.infra.task_gateway import TaskGateway
from taskboard.infra.user_gateway import UserGateway


class FakeResponse:
    def __init__(self, status_code: int, body=None) -> None:
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "params": params, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def client_with(*responses, token="tok"):
    session = FakeSession(*responses)
    client = ApiClient("http://api.test/api", token_provider=lambda: token, session=session)
    return client, session


def test_bearer_token_and_base_url() -> None:
    client, session = client_with(FakeResponse(200, {"success": True, "data": []}))

    client.get("task/getAllTasks")

    call = session.calls[0]
    assert call["url"] == "http://api.test/api/task/getAllTasks"
    assert call["headers"]["Authorization"] == "Bearer tok"


def test_unauthenticated_calls_skip_token() -> None:
    client, session = client_with(FakeResponse(200, {"error": False, "result": {}}))
    client.post("auth/login", json={}, authenticated=False)
    assert "Authorization" not in session.calls[0]["headers"]


@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, AuthenticationError),
        (403, PermissionDeniedError),
        (404, NotFoundError),
        (400, ValidationError),
        (422, ValidationError),
        (500, ApiError),
    ],
)
def test_status_codes_map_to_errors(status, error_type) -> None:
    client, _ = client_with(FakeResponse(status, {"message": "backend says no"}))
    with pytest.raises(error_type, match="backend says no") as info:
        client.get("task/getAllTasks")
    assert info.value.status == status


def test_validation_errors_carry_fields() -> None:
    body = {"message": "Invalid", "errors": [{"path": "title", "msg": "Title is required"}]}
    client, _ = client_with(FakeResponse(422, body))
    with pytest.raises(ValidationError) as info:
        client.post("task/addTask", json={})
    assert info.value.field_errors == {"title": "Title is required"}


def test_unauthorized_hook_fires_for_authenticated_requests_only() -> None:
    client, _ = client_with(FakeResponse(401), FakeResponse(401))
    fired = []
    client.add_unauthorized_hook(lambda: fired.append(True))

    with pytest.raises(AuthenticationError):
        client.post("auth/login", json={}, authenticated=False)
    assert fired == []

    with pytest.raises(AuthenticationError, match="Session expired"):
        client.get("auth/CurrentUser")
    assert fired == [True]


def test_failure_envelope_raises() -> None:
    client, _ = client_with(FakeResponse(200, {"success": False, "message": "Task not created"}))
    with pytest.raises(ApiError, match="Task not created"):
        client.post("task/addTask", json={})


def test_transport_failure_is_network_error() -> None:
    client, _ = client_with(requests.Timeout("read timed out"))
    with pytest.raises(NetworkError):
        client.get("task/getAllTasks")


def test_task_gateway_parses_envelope() -> None:
    row = {
        "_id": "665f",
        "title": "Audit",
        "dueDate": "2026-03-12T00:00:00.000Z",
        "status": "done",
        "priority": "urgent",
        "assignedTo": "alice@example.com",
        "assignedToUser": {"_id": "u-alice", "name": "Alice", "email": "alice@example.com"},
        "assignedBy": {"email": "bob@example.com", "name": "Bob"},
        "taskType": "mystery",
        "completedApproval": True,
    }
    client, session = client_with(FakeResponse(200, {"success": True, "data": [row, "junk"]}))

    tasks = TaskGateway(client).list_tasks()

    assert len(tasks) == 1
    task = tasks[0]
    assert task.id == "665f"
    assert task.status == TaskStatus.COMPLETED
    assert task.priority == "high"
    assert task.task_type == "regular"
    assert task.assigned_to.id == "u-alice"
    assert task.assigned_to.name == "Alice"
    assert task.assigned_by.name == "Bob"
    assert task.completed_approval is True


def test_history_is_written_through_update_endpoint() -> None:
    client, session = client_with(FakeResponse(200, {"success": True, "data": {}}))

    TaskGateway(client).record_history("t1", "task_edited", "Task edited by admin (Root): Description updated")

    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"].endswith("task/updateTask/t1")
    assert call["json"] == {"note": "Task edited by admin (Root): Description updated", "historyAction": "task_edited"}


def test_login_reads_result_envelope() -> None:
    body = {
        "error": False,
        "msg": "Login successful!",
        "result": {"token": "jwt", "user": {"_id": "u1", "name": "Root", "role": "admin"}},
    }
    client, session = client_with(FakeResponse(200, body))

    result = UserGateway(client).login("root@example.com", "secret")

    assert result.token == "jwt"
    assert result.user.role == UserRole.ADMIN
    assert result.user.email == "root@example.com"
    assert result.message == "Login successful!"
    assert session.calls[0]["json"] == {"email": "root@example.com", "password": "secret"}


def test_login_without_token_fails() -> None:
    client, _ = client_with(FakeResponse(200, {"error": False, "msg": "Invalid credentials", "result": {}}))
    with pytest.raises(ApiError, match="Invalid credentials"):
        UserGateway(client).login("a@b.co", "x")


def test_brand_listing_passes_filters() -> None:
    body = {"success": True, "data": [{"_id": "b1", "name": "Lays", "companyName": "acs", "launchYear": 2019}]}
    client, session = client_with(FakeResponse(200, body))

    brands = BrandGateway(client).list_brands(search="la", company="acs")

    assert brands[0].name == "Lays"
    assert brands[0].company == "acs"
    assert brands[0].meta == {"launchYear": 2019}
    assert session.calls[0]["url"] == "http://api.test/api/brands"
    assert session.calls[0]["params"] == {"search": "la", "company": "acs"}
