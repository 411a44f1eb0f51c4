from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskboard.domain.entities import TaskEntity, UserEntity, UserRef
from taskboard.domain.enums import TaskPriority, TaskStatus, TaskType, UserRole
from taskboard.services.notifications import ToastNotifier

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def alice() -> UserEntity:
    return UserEntity(id="u-alice", name="Alice", email="alice@example.com")


@pytest.fixture()
def bob() -> UserEntity:
    return UserEntity(id="u-bob", name="Bob", email="bob@example.com")


@pytest.fixture()
def admin() -> UserEntity:
    return UserEntity(id="u-admin", name="Root", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture()
def notifier() -> ToastNotifier:
    return ToastNotifier()


@pytest.fixture()
def make_task():
    """Task factory: emails for the assignee/assigner, everything else optional."""

    def _make(
        task_id: str = "t1",
        *,
        assigned_to: str = "alice@example.com",
        assigned_by: str | None = "bob@example.com",
        due_date: str = "2026-03-12",
        status: TaskStatus = TaskStatus.PENDING,
        priority: TaskPriority = TaskPriority.MEDIUM,
        task_type: TaskType = TaskType.REGULAR,
        title: str = "Write report",
        description: str | None = None,
        company_name: str = "acs",
        brand: str | None = None,
        completed_approval: bool = False,
    ) -> TaskEntity:
        return TaskEntity(
            id=task_id,
            title=title,
            description=description,
            due_date=due_date,
            status=status,
            priority=priority,
            task_type=task_type,
            assigned_to=UserRef(email=assigned_to),
            assigned_by=UserRef(email=assigned_by) if assigned_by else None,
            company_name=company_name,
            brand=brand,
            completed_approval=completed_approval,
        )

    return _make
