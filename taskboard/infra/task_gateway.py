from __future__ import annotations

import logging
from typing import Any, Optional

from taskboard.domain.entities import CommentEntity, TaskEntity, TaskHistoryEntry, UserRef
from taskboard.domain.enums import TaskPriority, TaskStatus, TaskType

from .http import ApiClient

logger = logging.getLogger(__name__)


def _str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _record_id(data: dict[str, Any]) -> str:
    return _str(data.get("_id") or data.get("id"))


def _to_user_ref(value: Any, snapshot: Any = None) -> Optional[UserRef]:
    if isinstance(value, dict):
        ref = UserRef(
            email=_str(value.get("email")),
            id=_str(value.get("id") or value.get("_id")) or None,
            name=value.get("name"),
            role=value.get("role"),
        )
    elif isinstance(value, str) and value:
        ref = UserRef(email=value)
    else:
        ref = None

    if isinstance(snapshot, dict) and snapshot.get("email"):
        snap = _to_user_ref(snapshot)
        if ref is None or ref.email == snap.email:
            return UserRef(
                email=snap.email,
                id=(ref.id if ref else None) or snap.id,
                name=(ref.name if ref else None) or snap.name,
                role=(ref.role if ref else None) or snap.role,
            )
    return ref


def to_task_entity(data: dict[str, Any]) -> TaskEntity:
    tags = data.get("tags") or ()
    return TaskEntity(
        id=_record_id(data),
        title=_str(data.get("title")),
        description=data.get("description"),
        due_date=_str(data.get("dueDate")),
        status=TaskStatus.from_api(data.get("status")),
        priority=TaskPriority.from_api(data.get("priority")),
        assigned_to=_to_user_ref(data.get("assignedTo"), data.get("assignedToUser")) or UserRef(email=""),
        assigned_by=_to_user_ref(data.get("assignedBy")),
        company_name=_str(data.get("companyName") or data.get("company")),
        brand=data.get("brand") or None,
        task_type=TaskType.from_api(data.get("taskType") or data.get("type")),
        completed_approval=bool(data.get("completedApproval", False)),
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, (list, tuple)) else (),
    )


def to_comment_entity(data: dict[str, Any], task_id: str) -> CommentEntity:
    created_at = _str(data.get("createdAt"))
    return CommentEntity(
        id=_record_id(data),
        task_id=_str(data.get("taskId") or task_id),
        user_id=_str(data.get("userId"), "unknown-user"),
        user_name=_str(data.get("userName"), "User"),
        user_email=_str(data.get("userEmail"), "unknown@example.com"),
        user_role=_str(data.get("userRole"), "user"),
        content=_str(data.get("content")),
        created_at=created_at,
        updated_at=_str(data.get("updatedAt") or created_at),
    )


def to_history_entry(data: dict[str, Any], task_id: str) -> TaskHistoryEntry:
    return TaskHistoryEntry(
        id=_record_id(data),
        task_id=_str(data.get("taskId") or task_id),
        action=_str(data.get("action")),
        description=_str(data.get("description") or data.get("note")),
        user_id=_str(data.get("userId")),
        user_name=_str(data.get("userName")),
        user_email=_str(data.get("userEmail")),
        user_role=data.get("userRole"),
        timestamp=_str(data.get("timestamp") or data.get("createdAt")),
    )


class TaskGateway:
    """Wrapper around the backend's task endpoints (``task/...``)."""

    def __init__(self, client: ApiClient, prefix: str = "task/") -> None:
        self._client = client
        self._prefix = prefix

    def _path(self, *parts: str) -> str:
        return self._prefix + "/".join(parts)

    def list_tasks(self) -> list[TaskEntity]:
        body = self._client.get(self._path("getAllTasks"))
        rows = body.get("data") or []
        return [to_task_entity(row) for row in rows if isinstance(row, dict)]

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        body = self._client.get(self._path("singleTask", task_id))
        data = body.get("data")
        return to_task_entity(data) if isinstance(data, dict) else None

    def add_task(self, payload: dict[str, Any]) -> Optional[TaskEntity]:
        body = self._client.post(self._path("addTask"), json=payload)
        data = body.get("data")
        return to_task_entity(data) if isinstance(data, dict) else None

    def update_task(self, task_id: str, payload: dict[str, Any]) -> Optional[TaskEntity]:
        body = self._client.put(self._path("updateTask", task_id), json=payload)
        data = body.get("data")
        return to_task_entity(data) if isinstance(data, dict) else None

    def delete_task(self, task_id: str) -> None:
        self._client.delete(self._path("deleteTask", task_id))

    def record_history(self, task_id: str, action: str, description: str) -> None:
        # The backend appends a history entry for the update's ``note``.
        self._client.put(
            self._path("updateTask", task_id),
            json={"note": description, "historyAction": action},
        )

    def list_history(self, task_id: str) -> list[TaskHistoryEntry]:
        body = self._client.get(self._path(task_id, "history"))
        rows = body.get("data") or []
        return [to_history_entry(row, task_id) for row in rows if isinstance(row, dict)]

    def add_comment(self, task_id: str, content: str) -> Optional[CommentEntity]:
        # Author identity is derived from the bearer token server-side.
        body = self._client.post(self._path(task_id, "comments"), json={"content": content})
        data = body.get("data")
        return to_comment_entity(data, task_id) if isinstance(data, dict) else None

    def list_comments(self, task_id: str) -> list[CommentEntity]:
        body = self._client.get(self._path(task_id, "comments"))
        rows = body.get("data") or []
        return [to_comment_entity(row, task_id) for row in rows if isinstance(row, dict)]

    def delete_comment(self, task_id: str, comment_id: str) -> None:
        self._client.delete(self._path(task_id, "comments", comment_id))
