from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Optional, Protocol

from taskboard.domain.dates import UTC, calendar_date, utcnow
from taskboard.domain.entities import EXTERNAL_ID_PREFIX, TaskEntity, UserEntity
from taskboard.domain.errors import ExternalTaskError, TaskboardError
from taskboard.domain.forms import TaskForm

from .notifications import Notifier
from .task_service import TaskService

logger = logging.getLogger(__name__)

GRID_CELLS = 42


class CalendarSource(Protocol):
    @property
    def is_configured(self) -> bool: ...
    @property
    def is_signed_in(self) -> bool: ...
    def sign_in(self, access_token: str) -> None: ...
    def sign_out(self) -> None: ...
    def month_tasks(
        self,
        year: int,
        month: int,
        current_user: UserEntity | None,
        tz: tzinfo = UTC,
        now: datetime | None = None,
    ) -> list[TaskEntity]: ...


def month_grid(year: int, month: int) -> list[date]:
    """Six Sunday-first weeks covering the month, padded with neighbour days."""
    first = date(year, month, 1)
    # date.weekday(): Monday is 0, so Sunday-first offset is (weekday + 1) % 7.
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    return [start + timedelta(days=offset) for offset in range(GRID_CELLS)]


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class CalendarService:
    def __init__(
        self,
        adapter: CalendarSource,
        task_service: TaskService,
        notifier: Notifier,
        *,
        tz: tzinfo = UTC,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._adapter = adapter
        self._tasks = task_service
        self._notifier = notifier
        self._tz = tz
        self._clock = clock
        today = clock().astimezone(tz).date()
        self.year = today.year
        self.month = today.month
        self.external_tasks: list[TaskEntity] = []
        self.error: Optional[str] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def current_user(self) -> UserEntity | None:
        return self._tasks.current_user

    @property
    def is_signed_in(self) -> bool:
        return self._adapter.is_signed_in

    # ---- Google session ----

    def sign_in(self, access_token: str) -> bool:
        try:
            self._adapter.sign_in(access_token)
        except TaskboardError as exc:
            self.error = str(exc)
            self._notifier.error(self.error)
            return False
        self._notifier.success("Connected to Google Calendar")
        return self.refresh()

    def sign_out(self) -> None:
        self._adapter.sign_out()
        self._bump_generation()
        self.external_tasks = []
        self.error = None
        self._notifier.info("Disconnected from Google Calendar")

    # ---- navigation ----

    def next_month(self) -> bool:
        return self.go_to(*_shift_month(self.year, self.month, 1))

    def previous_month(self) -> bool:
        return self.go_to(*_shift_month(self.year, self.month, -1))

    def go_to(self, year: int, month: int) -> bool:
        self.year, self.month = year, month
        if not self._adapter.is_signed_in:
            return True
        return self.refresh()

    def refresh(self) -> bool:
        # A response for a superseded generation is dropped.
        generation = self._bump_generation()
        year, month = self.year, self.month

        try:
            events = self._adapter.month_tasks(year, month, self.current_user, self._tz, self._clock())
        except TaskboardError as exc:
            logger.warning("Google Calendar fetch for %04d-%02d failed: %s", year, month, exc)
            with self._lock:
                if generation != self._generation:
                    return False
                self.external_tasks = []
            self.error = str(exc) or "Failed to load Google Calendar events"
            self._notifier.error(self.error)
            return False

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale calendar response for %04d-%02d", year, month)
                return False
            self.external_tasks = events
        self.error = None
        return True

    def _bump_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    # ---- merged view ----

    def merged_tasks(self) -> list[TaskEntity]:
        native = self._tasks.visible()
        return [*native, *self.external_tasks]

    def tasks_for_date(self, day: date) -> list[TaskEntity]:
        return [t for t in self.merged_tasks() if calendar_date(t.due_date, self._tz) == day]

    def bucket_by_day(self) -> dict[date, list[TaskEntity]]:
        cells = month_grid(self.year, self.month)
        first, last = cells[0], cells[-1]
        buckets: dict[date, list[TaskEntity]] = defaultdict(list)
        for task in self.merged_tasks():
            day = calendar_date(task.due_date, self._tz)
            if day is not None and first <= day <= last:
                buckets[day].append(task)
        return {cell: buckets.get(cell, []) for cell in cells}

    def external_link(self, task_id: str) -> Optional[str]:
        task = next((t for t in self.external_tasks if t.id == task_id), None)
        return task.external_link if task else None

    # ---- mutations ----

    def _refuse_external(self, task_id: str, action: str) -> None:
        if task_id.startswith(EXTERNAL_ID_PREFIX):
            raise ExternalTaskError(task_id, action)

    def toggle_status(self, task_id: str, admin_override: bool = False) -> TaskEntity | None:
        self._refuse_external(task_id, "change the status of")
        return self._tasks.toggle_status(task_id, admin_override)

    def edit_task(self, task_id: str, form: TaskForm) -> TaskEntity | None:
        self._refuse_external(task_id, "edit")
        return self._tasks.save_edit(task_id, form)

    def delete_task(self, task_id: str) -> bool:
        self._refuse_external(task_id, "delete")
        return self._tasks.delete_task(task_id)
