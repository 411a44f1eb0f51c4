from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Iterable

from taskboard.domain.dates import UTC, calendar_date, is_overdue, utcnow
from taskboard.domain.entities import TaskEntity, UserEntity
from taskboard.domain.enums import AssignedScope, DateWindow, StatFilter, TaskStatus
from taskboard.domain.filters import ALL, TaskFilters
from taskboard.domain.permissions import is_assignee, is_assigner, is_visible

COMPANY_BRANDS: dict[str, tuple[str, ...]] = {
    "acs": ("Chips", "Soy", "Saffola", "Lays", "Pepsi", "7Up"),
    "md inpex": ("Inpex Pro", "Inpex Lite", "Inpex Max"),
    "tech solutions": ("TechX", "TechPro", "TechLite"),
    "global inc": ("Global Pro", "Global Elite", "Global Standard"),
    "company name": ("Standard", "Premium", "Enterprise"),
}


def available_brands(company: str) -> tuple[str, ...]:
    return COMPANY_BRANDS.get(company, ())


def visible_tasks(tasks: Iterable[TaskEntity], user: UserEntity | None) -> list[TaskEntity]:
    return [task for task in tasks if is_visible(task, user)]


def _apply_stat(tasks: list[TaskEntity], stat: StatFilter, now: datetime, tz: tzinfo) -> list[TaskEntity]:
    if stat == StatFilter.COMPLETED:
        return [t for t in tasks if t.status == TaskStatus.COMPLETED]
    if stat == StatFilter.PENDING:
        return [t for t in tasks if t.status != TaskStatus.COMPLETED]
    if stat == StatFilter.OVERDUE:
        return [t for t in tasks if is_overdue(t.due_date, t.status, now, tz)]
    return tasks


def _apply_date_window(
    tasks: list[TaskEntity], window: DateWindow, now: datetime, tz: tzinfo
) -> list[TaskEntity]:
    if window == DateWindow.OVERDUE:
        return [t for t in tasks if is_overdue(t.due_date, t.status, now, tz)]
    if window not in (DateWindow.TODAY, DateWindow.WEEK):
        return tasks

    today = now.astimezone(tz).date()
    horizon = today if window == DateWindow.TODAY else today + timedelta(days=7)
    selected = []
    for task in tasks:
        due = calendar_date(task.due_date, tz)
        if due is not None and today <= due <= horizon:
            selected.append(task)
    return selected


def _matches_search(task: TaskEntity, term: str) -> bool:
    fields = (task.title, task.description, task.company_name, task.brand)
    return any(term in (value or "").lower() for value in fields)


def filter_tasks(
    tasks: Iterable[TaskEntity],
    user: UserEntity | None,
    filters: TaskFilters = TaskFilters(),
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> list[TaskEntity]:
    current = now or utcnow()
    selected = visible_tasks(tasks, user)
    selected = _apply_stat(selected, filters.stat, current, tz)

    if filters.status != ALL:
        selected = [t for t in selected if t.status == filters.status]
    if filters.priority != ALL:
        selected = [t for t in selected if t.priority == filters.priority]
    if filters.task_type != ALL:
        selected = [t for t in selected if t.task_type == filters.task_type]
    if filters.company != ALL:
        selected = [t for t in selected if t.company_name == filters.company]
    if filters.brand != ALL:
        selected = [t for t in selected if t.brand == filters.brand]

    selected = _apply_date_window(selected, filters.date, current, tz)

    if filters.assigned == AssignedScope.ASSIGNED_TO_ME:
        selected = [t for t in selected if is_assignee(t, user)]
    elif filters.assigned == AssignedScope.ASSIGNED_BY_ME:
        selected = [t for t in selected if is_assigner(t, user)]

    if filters.search:
        term = filters.search.lower()
        selected = [t for t in selected if _matches_search(t, term)]

    return selected


def compute_stats(
    tasks: Iterable[TaskEntity],
    user: UserEntity | None,
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> dict[str, int]:
    current = now or utcnow()
    mine = visible_tasks(tasks, user)
    completed = sum(1 for t in mine if t.status == TaskStatus.COMPLETED)
    overdue = sum(1 for t in mine if is_overdue(t.due_date, t.status, current, tz))
    return {
        "total": len(mine),
        "completed": completed,
        "pending": len(mine) - completed,
        "overdue": overdue,
    }


def active_filter_count(filters: TaskFilters) -> int:
    # Brand narrows company and is not counted on its own.
    values = (
        filters.status,
        filters.priority,
        filters.assigned,
        filters.date,
        filters.task_type,
        filters.company,
    )
    return sum(1 for value in values if value != ALL)
