from __future__ import annotations

from typing import Any


class TaskboardError(Exception):
    """Root of every error raised by the taskboard client."""


class ApiError(TaskboardError):
    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload or {}


class NetworkError(ApiError):
    """No response from the backend (connection refused, DNS, timeout)."""


class AuthenticationError(ApiError):
    """401: the bearer token is missing, expired or rejected."""


class PermissionDeniedError(ApiError):
    """403."""


class NotFoundError(ApiError):
    """404."""


class ValidationError(ApiError):
    """400/422 with optional per-field messages."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        payload: dict[str, Any] | None = None,
        field_errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload)
        self.field_errors = dict(field_errors or {})


class ExternalTaskError(TaskboardError):
    """A native-task mutation was attempted on a calendar pseudo-task."""

    def __init__(self, task_id: str, action: str) -> None:
        super().__init__(f"Cannot {action} external calendar event {task_id!r}")
        self.task_id = task_id
        self.action = action


class CalendarNotConfigured(TaskboardError):
    """Google client id or API key is missing."""
