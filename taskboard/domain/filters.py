from __future__ import annotations

from dataclasses import dataclass

from .enums import AssignedScope, DateWindow, StatFilter

ALL = "all"


@dataclass(frozen=True)
class TaskFilters:
    status: str = ALL
    priority: str = ALL
    assigned: AssignedScope = AssignedScope.ALL
    date: DateWindow = DateWindow.ALL
    task_type: str = ALL
    company: str = ALL
    brand: str = ALL
    stat: StatFilter = StatFilter.ALL
    search: str | None = None
