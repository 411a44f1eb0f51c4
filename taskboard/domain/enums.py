from __future__ import annotations

from enum import StrEnum


class _WireEnum(StrEnum):
    """StrEnum with a lenient constructor for values coming off the wire."""

    @classmethod
    def _default(cls) -> "_WireEnum":
        raise NotImplementedError

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}

    @classmethod
    def from_api(cls, raw: object):
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str) or not raw.strip():
            return cls._default()
        value = raw.strip().lower()
        value = cls._aliases().get(value, value)
        try:
            return cls(value)
        except ValueError:
            return cls._default()


class TaskStatus(_WireEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def _default(cls) -> "TaskStatus":
        return cls.PENDING

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"in_progress": "in-progress", "done": "completed", "on-hold": "pending"}


class TaskPriority(_WireEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def _default(cls) -> "TaskPriority":
        return cls.MEDIUM

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"urgent": "high"}


class TaskType(_WireEnum):
    REGULAR = "regular"
    TROUBLESHOOT = "troubleshoot"
    MAINTENANCE = "maintenance"
    DEVELOPMENT = "development"

    @classmethod
    def _default(cls) -> "TaskType":
        return cls.REGULAR


class UserRole(_WireEnum):
    ADMIN = "admin"
    USER = "user"
    MANAGER = "manager"
    DEVELOPER = "developer"
    DESIGNER = "designer"

    @classmethod
    def _default(cls) -> "UserRole":
        return cls.USER


class StatFilter(StrEnum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"
    OVERDUE = "overdue"


class DateWindow(StrEnum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"


class AssignedScope(StrEnum):
    ALL = "all"
    ASSIGNED_TO_ME = "assigned-to-me"
    ASSIGNED_BY_ME = "assigned-by-me"


class HistoryAction(StrEnum):
    TASK_EDITED = "task_edited"
    TASK_REASSIGNED = "task_reassigned"
    MARKED_COMPLETED = "marked_completed"
    MARKED_PENDING = "marked_pending"
    ADMIN_COMPLETED = "admin_completed"
    ASSIGNER_PERMANENT_APPROVED = "assigner_permanent_approved"
    ASSIGNER_APPROVAL_REMOVED = "assigner_approval_removed"
