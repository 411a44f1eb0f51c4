from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Sequence

from taskboard.domain.dates import UTC, is_overdue, utcnow
from taskboard.domain.entities import TaskEntity, UserEntity
from taskboard.domain.enums import TaskStatus
from taskboard.domain.errors import TaskboardError
from taskboard.domain.filters import ALL
from taskboard.domain.permissions import is_assignee, is_assigner
from taskboard.infra.user_gateway import UserGateway

from .notifications import Notifier

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "role", "tasks")


@dataclass(frozen=True)
class UserStats:
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    overdue_tasks: int
    tasks_created: int
    completion_rate: int


def user_stats(
    user: UserEntity,
    tasks: Iterable[TaskEntity],
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> UserStats:
    current = now or utcnow()
    tasks = list(tasks)
    assigned = [t for t in tasks if is_assignee(t, user)]
    completed = sum(1 for t in assigned if t.status == TaskStatus.COMPLETED)
    overdue = sum(1 for t in assigned if is_overdue(t.due_date, t.status, current, tz))
    created = sum(1 for t in tasks if is_assigner(t, user))
    rate = round(completed / len(assigned) * 100) if assigned else 0
    return UserStats(
        total_tasks=len(assigned),
        completed_tasks=completed,
        pending_tasks=len(assigned) - completed,
        overdue_tasks=overdue,
        tasks_created=created,
        completion_rate=rate,
    )


def filter_users(
    users: Iterable[UserEntity],
    tasks: Sequence[TaskEntity] = (),
    *,
    search: str = "",
    role: str = ALL,
    sort_by: str = "name",
    descending: bool = False,
) -> list[UserEntity]:
    term = search.strip().lower()
    selected = [
        u
        for u in users
        if not term or any(term in (value or "").lower() for value in (u.name, u.email, u.role.value))
    ]
    if role != ALL:
        selected = [u for u in selected if u.role == role]

    if sort_by == "role":
        key = lambda u: u.role.value
    elif sort_by == "tasks":
        key = lambda u: sum(1 for t in tasks if is_assignee(t, u))
    else:
        key = lambda u: u.name.lower()
    return sorted(selected, key=key, reverse=descending)


class TeamService:
    def __init__(self, gateway: UserGateway, notifier: Notifier) -> None:
        self._gateway = gateway
        self._notifier = notifier
        self.users: list[UserEntity] = []

    def load_users(self) -> list[UserEntity]:
        try:
            self.users = self._gateway.list_users()
        except TaskboardError as exc:
            logger.warning("Failed to load users: %s", exc)
            self._notifier.error("Failed to load users")
            return self.users
        return self.users

    def delete_user(self, actor: UserEntity | None, user_id: str) -> bool:
        if actor is None or not actor.is_admin:
            self._notifier.error("Only admins can delete users")
            return False
        if actor.id == user_id:
            self._notifier.error("You cannot delete your own account")
            return False
        try:
            self._gateway.delete_user(user_id)
        except TaskboardError as exc:
            logger.warning("Failed to delete user %s: %s", user_id, exc)
            self._notifier.error(str(exc) or "Failed to delete user")
            return False
        self.users = [u for u in self.users if u.id != user_id]
        self._notifier.success("User deleted successfully")
        return True
