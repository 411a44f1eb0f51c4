from __future__ import annotations

from datetime import datetime, timezone

from taskboard.domain.entities import UserEntity
from taskboard.domain.enums import TaskStatus, UserRole
from taskboard.domain.errors import NetworkError
from taskboard.services.team_service import TeamService, filter_users, user_stats

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeUserGateway:
    def __init__(self, users) -> None:
        self.users = list(users)
        self.deleted: list[str] = []
        self.error: Exception | None = None

    def list_users(self):
        if self.error is not None:
            raise self.error
        return list(self.users)

    def delete_user(self, user_id):
        self.deleted.append(user_id)


def test_user_stats(make_task, alice) -> None:
    tasks = [
        make_task("t1", status=TaskStatus.COMPLETED),
        make_task("t2", due_date="2026-03-01"),
        make_task("t3", due_date="2026-03-20"),
        make_task("t4", assigned_to="bob@example.com", assigned_by="alice@example.com"),
    ]

    stats = user_stats(alice, tasks, now=NOW)

    assert stats.total_tasks == 3
    assert stats.completed_tasks == 1
    assert stats.pending_tasks == 2
    assert stats.overdue_tasks == 1
    assert stats.tasks_created == 1
    assert stats.completion_rate == 33


def test_user_without_tasks_has_zero_rate(alice) -> None:
    assert user_stats(alice, [], now=NOW).completion_rate == 0


def test_filter_users_by_search_role_and_sort(make_task, alice, bob, admin) -> None:
    users = [bob, admin, alice]
    tasks = [make_task("t1"), make_task("t2"), make_task("t3", assigned_to="bob@example.com")]

    assert filter_users(users, search="ALICE") == [alice]
    assert filter_users(users, search="admin") == [admin]
    assert filter_users(users, role=UserRole.USER.value) == [alice, bob]
    assert filter_users(users, sort_by="name") == [alice, bob, admin]
    assert filter_users(users, tasks, sort_by="tasks", descending=True) == [alice, bob, admin]


def test_load_users_failure_keeps_previous_list(alice, notifier) -> None:
    gateway = FakeUserGateway([alice])
    team = TeamService(gateway, notifier)
    assert team.load_users() == [alice]

    gateway.error = NetworkError("offline")
    assert team.load_users() == [alice]
    assert notifier.last.message == "Failed to load users"


def test_only_admin_deletes_other_users(alice, bob, admin, notifier) -> None:
    gateway = FakeUserGateway([alice, bob, admin])
    team = TeamService(gateway, notifier)
    team.load_users()

    assert team.delete_user(alice, bob.id) is False
    assert team.delete_user(admin, admin.id) is False
    assert team.delete_user(admin, bob.id) is True
    assert gateway.deleted == [bob.id]
    assert [u.id for u in team.users] == [alice.id, admin.id]


def test_inactive_flag_survives_filtering() -> None:
    ghost = UserEntity(id="u-x", name="Ghost", email="ghost@example.com", is_active=False)
    assert filter_users([ghost], search="ghost")[0].is_active is False
