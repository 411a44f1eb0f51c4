from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from .enums import TaskPriority, TaskStatus, TaskType

DEFAULT_COMPANY = "company name"


@dataclass(frozen=True)
class TaskForm:
    title: str = ""
    description: str = ""
    assigned_to: str = ""
    due_date: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    task_type: TaskType = TaskType.REGULAR
    company_name: str = DEFAULT_COMPANY
    brand: str = ""
    status: TaskStatus = TaskStatus.PENDING

    def to_payload(self) -> dict:
        return {
            "title": self.title.strip(),
            "description": self.description,
            "assignedTo": self.assigned_to,
            "dueDate": self.due_date,
            "priority": str(self.priority),
            "taskType": str(self.task_type),
            "companyName": self.company_name,
            "brand": self.brand,
            "status": str(self.status),
        }


def _parse_form_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _common_errors(form: TaskForm) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not form.title.strip():
        errors["title"] = "Title is required"
    if not form.assigned_to.strip():
        errors["assignedTo"] = "Please assign the task to a user"
    if not form.due_date.strip():
        errors["dueDate"] = "Due date is required"
    elif _parse_form_date(form.due_date) is None:
        errors["dueDate"] = "Due date is not a valid date"
    return errors


def validate_new_task(form: TaskForm, today: date) -> dict[str, str]:
    errors = _common_errors(form)
    if "dueDate" not in errors:
        due = _parse_form_date(form.due_date)
        if due < today - timedelta(days=1):
            errors["dueDate"] = "Due date cannot be in the past"
    return errors


def validate_edit_task(form: TaskForm, today: date) -> dict[str, str]:
    errors = _common_errors(form)
    if "dueDate" not in errors:
        due = _parse_form_date(form.due_date)
        try:
            one_year_ago = today.replace(year=today.year - 1)
        except ValueError:
            one_year_ago = today.replace(year=today.year - 1, day=28)
        if due < one_year_ago:
            errors["dueDate"] = "Due date cannot be more than 1 year in the past"
    return errors
