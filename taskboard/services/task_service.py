from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, tzinfo
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

from taskboard.domain.dates import UTC, calendar_date, format_date, to_iso, utcnow
from taskboard.domain.entities import (
    CommentEntity,
    TaskEntity,
    TaskHistoryEntry,
    UserEntity,
    UserRef,
)
from taskboard.domain.enums import HistoryAction, TaskStatus
from taskboard.domain.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    TaskboardError,
    ValidationError,
)
from taskboard.domain.filters import TaskFilters
from taskboard.domain.forms import DEFAULT_COMPANY, TaskForm, validate_edit_task, validate_new_task
from taskboard.domain.permissions import can_edit_or_delete, can_mark_done, is_assignee, is_assigner

from .aggregation import compute_stats, filter_tasks
from .notifications import Notifier

logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Session expired. Please login again."


class TaskGatewayPort(Protocol):
    def list_tasks(self) -> list[TaskEntity]: ...
    def add_task(self, payload: dict[str, Any]) -> Optional[TaskEntity]: ...
    def update_task(self, task_id: str, payload: dict[str, Any]) -> Optional[TaskEntity]: ...
    def delete_task(self, task_id: str) -> None: ...
    def record_history(self, task_id: str, action: str, description: str) -> None: ...
    def list_history(self, task_id: str) -> list[TaskHistoryEntry]: ...
    def add_comment(self, task_id: str, content: str) -> Optional[CommentEntity]: ...
    def list_comments(self, task_id: str) -> list[CommentEntity]: ...
    def delete_comment(self, task_id: str, comment_id: str) -> None: ...


@dataclass(frozen=True)
class BulkFailure:
    index: int
    row_number: int
    title: str
    reason: str


@dataclass
class BulkCreateResult:
    created: list[TaskEntity] = field(default_factory=list)
    failures: list[BulkFailure] = field(default_factory=list)


def describe_changes(original: TaskEntity, updated: dict[str, Any], tz: tzinfo = UTC) -> list[str]:
    changes: list[str] = []

    title = updated.get("title")
    if title is not None and title != original.title:
        changes.append(f'Title changed from "{original.title}" to "{title}"')

    description = updated.get("description")
    if description is not None and description != (original.description or ""):
        changes.append("Description updated")

    assignee = updated.get("assignedTo") or ""
    if assignee and assignee != original.assigned_to.email:
        changes.append(f"Assignee changed from {original.assigned_to.email} to {assignee}")

    due_date = updated.get("dueDate")
    if due_date is not None and calendar_date(due_date, tz) != calendar_date(original.due_date, tz):
        changes.append(
            f"Due date changed from {format_date(original.due_date, tz)} to {format_date(due_date, tz)}"
        )

    for key, label, before in (
        ("priority", "Priority", original.priority),
        ("taskType", "Task type", original.task_type),
        ("companyName", "Company", original.company_name),
        ("brand", "Brand", original.brand),
        ("status", "Status", original.status),
    ):
        value = updated.get(key)
        if value is None or value == (before or ""):
            continue
        changes.append(f"{label} changed from {before} to {value}")

    return changes


def _merge_refs(previous: UserRef | None, current: UserRef | None) -> UserRef | None:
    if previous is None or current is None or previous.email != current.email:
        return current
    return UserRef(
        email=current.email,
        id=current.id or previous.id,
        name=current.name or previous.name,
        role=current.role or previous.role,
    )


class TaskService:
    def __init__(
        self,
        gateway: TaskGatewayPort,
        notifier: Notifier,
        current_user: UserEntity | None,
        *,
        users: Iterable[UserEntity] = (),
        tz: tzinfo = UTC,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._gateway = gateway
        self._notifier = notifier
        self.current_user = current_user
        self.users: list[UserEntity] = list(users)
        self._tz = tz
        self._clock = clock
        self.tasks: list[TaskEntity] = []
        self.form_errors: dict[str, str] = {}

    # ---- queries ----

    def refresh(self) -> bool:
        try:
            self.tasks = self._gateway.list_tasks()
        except TaskboardError as exc:
            self._fail(exc, "Failed to load tasks")
            return False
        logger.info("Loaded %s tasks", len(self.tasks))
        return True

    def find(self, task_id: str) -> TaskEntity | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def visible(self, filters: TaskFilters = TaskFilters()) -> list[TaskEntity]:
        return filter_tasks(self.tasks, self.current_user, filters, now=self._clock(), tz=self._tz)

    def stats(self) -> dict[str, int]:
        return compute_stats(self.tasks, self.current_user, now=self._clock(), tz=self._tz)

    def can_edit_or_delete(self, task: TaskEntity) -> bool:
        return can_edit_or_delete(task, self.current_user)

    def can_mark_done(self, task: TaskEntity) -> bool:
        return can_mark_done(task, self.current_user)

    # ---- create ----

    def create_task(self, form: TaskForm) -> TaskEntity | None:
        self.form_errors = validate_new_task(form, self._today())
        if self.form_errors:
            self._notifier.error("Please fix the highlighted fields")
            return None

        try:
            created = self._gateway.add_task(self._create_payload(form.to_payload()))
        except ValidationError as exc:
            self.form_errors = exc.field_errors
            self._fail(exc, "Failed to create task")
            return None
        except TaskboardError as exc:
            self._fail(exc, "Failed to create task")
            return None

        if created is None:
            self._notifier.error("Failed to create task")
            return None
        self.tasks.append(created)
        self._notifier.success("Task created successfully!")
        return created

    def bulk_create(self, payloads: Sequence[dict[str, Any]]) -> BulkCreateResult:
        # Rows already created stay created when a later row fails.
        result = BulkCreateResult()
        for index, payload in enumerate(payloads):
            row_number = _row_number(payload.get("rowNumber"), index)
            title = payload.get("title") or "Untitled Task"
            task_data = {
                "title": payload.get("title"),
                "description": payload.get("description") or "",
                "assignedTo": payload.get("assignedTo"),
                "dueDate": payload.get("dueDate"),
                "priority": payload.get("priority"),
                "taskType": payload.get("taskType") or "regular",
                "companyName": payload.get("companyName") or DEFAULT_COMPANY,
                "brand": payload.get("brand") or "",
            }
            try:
                created = self._gateway.add_task(self._create_payload(task_data))
            except TaskboardError as exc:
                logger.warning("Bulk create row %s failed: %s", row_number, exc)
                result.failures.append(
                    BulkFailure(index, row_number, title, str(exc) or "Failed to create task")
                )
                continue
            if created is None:
                result.failures.append(BulkFailure(index, row_number, title, "Failed to create task"))
            else:
                result.created.append(created)

        self.tasks.extend(result.created)
        if result.created:
            self._notifier.success(f"Created {len(result.created)} task(s)")
        if result.failures:
            self._notifier.error(f"{len(result.failures)} task(s) could not be created")
        return result

    # ---- status / approval ----

    def toggle_status(self, task_id: str, admin_override: bool = False) -> TaskEntity | None:
        task = self._require(task_id)
        if task is None:
            return None

        user = self.current_user
        forced = admin_override and user is not None and user.is_admin
        if task.completed_approval and not is_assigner(task, user):
            self._notifier.error("This task has been permanently approved and cannot be changed")
            return None
        if not task.completed_approval and not forced and not can_mark_done(task, user):
            self._notifier.error("You can only mark tasks assigned to you as done")
            return None

        new_status = TaskStatus.PENDING if task.status == TaskStatus.COMPLETED else TaskStatus.COMPLETED
        payload: dict[str, Any] = {"status": new_status.value}
        if new_status == TaskStatus.PENDING:
            payload["completedApproval"] = False
        elif forced:
            payload["completedApproval"] = True

        try:
            updated = self._gateway.update_task(task.id, payload)
        except TaskboardError as exc:
            self._fail(exc, "Failed to update task")
            return None
        if updated is None:
            self._notifier.error("Failed to update task")
            return None

        merged = self._store(task, updated)
        if new_status == TaskStatus.PENDING:
            action, verb = HistoryAction.MARKED_PENDING, "marked as pending by"
        elif forced and not is_assignee(task, user):
            action, verb = HistoryAction.ADMIN_COMPLETED, "completed by admin"
        else:
            action, verb = HistoryAction.MARKED_COMPLETED, "marked as completed by"
        self._record_history(task.id, action, f"Task {verb} {user.name}")
        self._notifier.success(f"Task marked as {new_status.value}")
        return merged

    def set_approval(self, task_id: str, approved: bool) -> TaskEntity | None:
        task = self._require(task_id)
        if task is None:
            return None
        if not is_assigner(task, self.current_user):
            self._notifier.error("Only the task assigner can permanently approve tasks")
            return None

        try:
            updated = self._gateway.update_task(task.id, {"completedApproval": approved})
        except TaskboardError as exc:
            self._fail(exc, "Failed to update approval status")
            return None

        merged = self._store(task, updated or replace(task, completed_approval=approved))
        user = self.current_user
        if approved:
            action = HistoryAction.ASSIGNER_PERMANENT_APPROVED
            description = f"Task permanently approved by Assigner {user.name}"
            self._notifier.success("Task PERMANENTLY approved by assigner!")
        else:
            action = HistoryAction.ASSIGNER_APPROVAL_REMOVED
            description = f"Task permanent approval removed by Assigner {user.name}"
            self._notifier.success("Permanent approval removed")
        self._record_history(task.id, action, description)
        return merged

    # ---- edit / delete / reassign ----

    def update_task(self, task_id: str, changes: dict[str, Any]) -> TaskEntity | None:
        task = self._require(task_id)
        if task is None:
            return None
        if not self._check_edit(task, changes.get("status"), changes.get("completedApproval")):
            return None

        payload = {**changes, "updatedAt": to_iso(self._clock())}
        try:
            updated = self._gateway.update_task(task.id, payload)
        except TaskboardError as exc:
            self._fail(exc, "Failed to update task")
            return None
        if updated is None:
            self._notifier.error("No data received from server")
            return None

        merged = self._store(task, updated)
        self._notifier.success("Task updated successfully")
        return merged

    def save_edit(self, task_id: str, form: TaskForm) -> TaskEntity | None:
        task = self._require(task_id)
        if task is None:
            return None
        self.form_errors = validate_edit_task(form, self._today())
        if self.form_errors:
            self._notifier.error("Please fix the highlighted fields")
            return None
        if not self._check_edit(task, form.status, None):
            return None

        update_data = form.to_payload()
        if task.assigned_by is not None:
            update_data["assignedBy"] = task.assigned_by.email
        snapshot = self._user_snapshot(form.assigned_to)
        if snapshot:
            update_data["assignedToUser"] = snapshot
        changes = describe_changes(task, update_data, self._tz)

        try:
            updated = self._gateway.update_task(task.id, update_data)
        except ValidationError as exc:
            self.form_errors = exc.field_errors
            self._fail(exc, "Failed to update task")
            return None
        except TaskboardError as exc:
            self._fail(exc, "Failed to update task")
            return None
        if updated is None:
            self._notifier.error("Failed to update task")
            return None

        merged = self._store(task, updated)
        if changes:
            user = self.current_user
            self._record_history(
                task.id,
                HistoryAction.TASK_EDITED,
                f"Task edited by {user.role} ({user.name}): {', '.join(changes)}",
            )
        self._notifier.success("Task updated successfully!")
        return merged

    def delete_task(self, task_id: str) -> bool:
        task = self._require(task_id)
        if task is None:
            return False
        if not self.can_edit_or_delete(task):
            self._notifier.error("Only the task creator can delete this task")
            return False

        try:
            self._gateway.delete_task(task.id)
        except TaskboardError as exc:
            self._fail(exc, "Failed to delete task")
            return False

        self.tasks = [t for t in self.tasks if t.id != task.id]
        self._notifier.success("Task deleted")
        return True

    def reassign(self, task_id: str, user_id: str) -> TaskEntity | None:
        task = self._require(task_id)
        if task is None:
            return None
        assignee = next((u for u in self.users if u.id == user_id), None)
        if assignee is None:
            self._notifier.error("User not found")
            return None
        if not self.can_edit_or_delete(task):
            self._notifier.error("Only the task creator can reassign this task")
            return None

        payload = {"assignedTo": assignee.email, "assignedToUser": self._user_snapshot(assignee.email)}
        try:
            updated = self._gateway.update_task(task.id, payload)
        except TaskboardError as exc:
            self._fail(exc, "Failed to reassign task")
            return None

        merged = self._store(task, updated or replace(task, assigned_to=assignee.as_ref()))
        self._record_history(
            task.id,
            HistoryAction.TASK_REASSIGNED,
            f"Task reassigned from {task.assigned_to.email} to {assignee.email}",
        )
        self._notifier.success(f"Task reassigned to {assignee.name}")
        return merged

    # ---- comments / history ----

    def add_comment(self, task_id: str, content: str) -> CommentEntity | None:
        text = content.strip()
        if not text:
            self._notifier.error("Comment cannot be empty")
            return None
        try:
            comment = self._gateway.add_comment(task_id, text)
        except TaskboardError as exc:
            self._fail(exc, "Failed to save comment")
            return None
        if comment is None:
            self._notifier.error("Failed to save comment")
            return None
        self._notifier.success("Comment saved successfully!")
        return comment

    def fetch_comments(self, task_id: str) -> list[CommentEntity]:
        try:
            return self._gateway.list_comments(task_id)
        except TaskboardError as exc:
            logger.warning("Comments for task %s unavailable: %s", task_id, exc)
            return []

    def delete_comment(self, task_id: str, comment_id: str) -> bool:
        try:
            self._gateway.delete_comment(task_id, comment_id)
        except TaskboardError as exc:
            self._fail(exc, "Failed to delete comment")
            return False
        self._notifier.success("Comment deleted successfully")
        return True

    def fetch_history(self, task_id: str) -> list[TaskHistoryEntry]:
        try:
            return self._gateway.list_history(task_id)
        except TaskboardError as exc:
            logger.warning("History for task %s unavailable: %s", task_id, exc)
            return []

    # ---- internals ----

    def _today(self):
        return self._clock().astimezone(self._tz).date()

    def _require(self, task_id: str) -> TaskEntity | None:
        task = self.find(task_id)
        if task is None:
            self._notifier.error("Task not found")
        return task

    def _check_edit(self, task: TaskEntity, status: Any, approval: Any) -> bool:
        if not self.can_edit_or_delete(task):
            self._notifier.error("Only the task creator can edit this task")
            return False
        if is_assigner(task, self.current_user):
            return True
        if approval is not None:
            self._notifier.error("Only the task assigner can permanently approve tasks")
            return False
        if task.completed_approval and status is not None and status != task.status:
            self._notifier.error("This task has been permanently approved and cannot be changed")
            return False
        return True

    def _store(self, previous: TaskEntity, updated: TaskEntity) -> TaskEntity:
        merged = replace(
            updated,
            assigned_to=_merge_refs(previous.assigned_to, updated.assigned_to) or previous.assigned_to,
            assigned_by=_merge_refs(previous.assigned_by, updated.assigned_by),
        )
        self.tasks = [merged if t.id == previous.id else t for t in self.tasks]
        return merged

    def _create_payload(self, data: dict[str, Any]) -> dict[str, Any]:
        payload = dict(data)
        payload["status"] = TaskStatus.PENDING.value
        if self.current_user is not None:
            payload["assignedBy"] = self.current_user.email
        snapshot = self._user_snapshot(payload.get("assignedTo"))
        if snapshot:
            payload["assignedToUser"] = snapshot
        return payload

    def _user_snapshot(self, email: str | None) -> dict[str, Any] | None:
        user = next((u for u in self.users if email and u.email == email), None)
        if user is None:
            return None
        return {"id": user.id, "name": user.name, "email": user.email, "role": user.role.value}

    def _record_history(self, task_id: str, action: HistoryAction, description: str) -> None:
        # The task update already succeeded; a lost history line is not worth undoing it.
        try:
            self._gateway.record_history(task_id, action.value, description)
        except TaskboardError as exc:
            logger.warning("History entry for task %s not recorded: %s", task_id, exc)

    def _fail(self, exc: TaskboardError, fallback: str) -> None:
        logger.warning("%s: %s", fallback, exc)
        self._notifier.error(_describe(exc, fallback))


def _row_number(value: Any, index: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return index + 1


def _describe(exc: TaskboardError, fallback: str) -> str:
    if isinstance(exc, AuthenticationError):
        return SESSION_EXPIRED
    if isinstance(exc, PermissionDeniedError):
        return "You do not have permission to edit this task"
    if isinstance(exc, NotFoundError):
        return "Task not found on server"
    if isinstance(exc, NetworkError):
        return "Network error. Check your connection and try again."
    if isinstance(exc, ApiError) and exc.message:
        return exc.message
    return fallback
