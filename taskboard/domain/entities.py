from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .enums import TaskPriority, TaskStatus, TaskType, UserRole

EXTERNAL_ID_PREFIX = "google-"


@dataclass(frozen=True)
class UserRef:
    email: str
    id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.email.split("@")[0] if self.email else "Unknown User"


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    due_date: str
    status: TaskStatus
    assigned_to: UserRef
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_by: Optional[UserRef] = None
    company_name: str = ""
    brand: Optional[str] = None
    task_type: TaskType = TaskType.REGULAR
    completed_approval: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tags: tuple[str, ...] = ()
    external_link: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.id.startswith(EXTERNAL_ID_PREFIX)


@dataclass(frozen=True)
class UserEntity:
    id: str
    name: str
    email: str
    role: UserRole = UserRole.USER
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: tuple[str, ...] = ()
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def as_ref(self) -> UserRef:
        return UserRef(email=self.email, id=self.id or None, name=self.name, role=self.role.value)


@dataclass(frozen=True)
class CommentEntity:
    id: str
    task_id: str
    user_id: str
    user_name: str
    user_email: str
    content: str
    created_at: str
    updated_at: str
    user_role: str = UserRole.USER.value


@dataclass(frozen=True)
class TaskHistoryEntry:
    id: str
    task_id: str
    action: str
    description: str
    user_id: str
    user_name: str
    user_email: str
    timestamp: str
    user_role: Optional[str] = None


@dataclass(frozen=True)
class BrandEntity:
    id: str
    name: str
    company: str = ""
    status: str = "active"
    description: Optional[str] = None
    meta: dict = field(default_factory=dict, compare=False)
