"""Advisory permission predicates.

These decide which actions the client offers. They are not an access-control
boundary: the backend remains the authority and may still answer 403.
"""
from __future__ import annotations

from .entities import TaskEntity, UserEntity, UserRef


def same_identity(ref: UserRef | None, user: UserEntity | UserRef | None) -> bool:
    # Email is the identity key; ids on refs are informational.
    if ref is None or user is None:
        return False
    return bool(ref.email) and ref.email == user.email


def is_assignee(task: TaskEntity, user: UserEntity | None) -> bool:
    return same_identity(task.assigned_to, user)


def is_assigner(task: TaskEntity, user: UserEntity | None) -> bool:
    return same_identity(task.assigned_by, user)


def is_visible(task: TaskEntity, user: UserEntity | None) -> bool:
    if user is None:
        return False
    if user.is_admin:
        return True
    return is_assignee(task, user) or is_assigner(task, user)


def can_edit_or_delete(task: TaskEntity, user: UserEntity | None) -> bool:
    if user is None:
        return False
    return user.is_admin or is_assigner(task, user)


def can_mark_done(task: TaskEntity, user: UserEntity | None) -> bool:
    if task.completed_approval:
        return False
    return is_assignee(task, user)
