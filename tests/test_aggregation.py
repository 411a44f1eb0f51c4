from __future__ import annotations

from dataclasses import replace

from taskboard.domain.entities import UserRef
from taskboard.domain.enums import AssignedScope, DateWindow, StatFilter, TaskPriority, TaskStatus
from taskboard.domain.filters import TaskFilters
from taskboard.services.aggregation import (
    active_filter_count,
    available_brands,
    compute_stats,
    filter_tasks,
)


def _tasks(make_task):
    return [
        make_task("t1", assigned_to="alice@example.com", assigned_by="bob@example.com"),
        make_task("t2", assigned_to="bob@example.com", assigned_by="alice@example.com", due_date="2026-03-01"),
        make_task("t3", assigned_to="carol@example.com", assigned_by="dave@example.com", status=TaskStatus.COMPLETED),
        make_task("t4", assigned_to="carol@example.com", assigned_by="bob@example.com", priority=TaskPriority.HIGH),
    ]


def test_admin_sees_everything(make_task, admin, now) -> None:
    tasks = _tasks(make_task)
    assert filter_tasks(tasks, admin, now=now) == tasks


def test_non_admin_sees_only_own_tasks(make_task, alice, bob, now) -> None:
    tasks = _tasks(make_task)
    for user in (alice, bob):
        result = filter_tasks(tasks, user, now=now)
        assert result
        for task in result:
            assert user.email in (task.assigned_to.email, task.assigned_by.email)
    assert [t.id for t in filter_tasks(tasks, alice, now=now)] == ["t1", "t2"]


def test_visibility_matches_on_email_not_id(make_task, alice, now) -> None:
    by_email = replace(make_task("t1"), assigned_to=UserRef(email="alice@example.com", id="legacy-7"))
    by_id = replace(make_task("t2", assigned_by=None), assigned_to=UserRef(email="carol@example.com", id="u-alice"))

    assert [t.id for t in filter_tasks([by_email, by_id], alice, now=now)] == ["t1"]


def test_missing_user_sees_nothing(make_task, now) -> None:
    assert filter_tasks(_tasks(make_task), None, now=now) == []


def test_filtering_is_repeatable_and_leaves_input_alone(make_task, admin, now) -> None:
    tasks = _tasks(make_task)
    snapshot = list(tasks)
    filters = TaskFilters(stat=StatFilter.PENDING, priority="high", search="report")

    first = filter_tasks(tasks, admin, filters, now=now)
    second = filter_tasks(tasks, admin, filters, now=now)

    assert first == second == [tasks[3]]
    assert tasks == snapshot


def test_stat_filters(make_task, admin, now) -> None:
    tasks = _tasks(make_task)
    ids = lambda stat: [t.id for t in filter_tasks(tasks, admin, TaskFilters(stat=stat), now=now)]

    assert ids(StatFilter.COMPLETED) == ["t3"]
    assert ids(StatFilter.PENDING) == ["t1", "t2", "t4"]
    assert ids(StatFilter.OVERDUE) == ["t2"]


def test_in_progress_counts_as_pending(make_task, admin, now) -> None:
    tasks = [make_task("t1", status=TaskStatus.IN_PROGRESS)]
    assert filter_tasks(tasks, admin, TaskFilters(stat=StatFilter.PENDING), now=now) == tasks


def test_date_windows(make_task, admin, now) -> None:
    tasks = [
        make_task("today", due_date="2026-03-10"),
        make_task("soon", due_date="2026-03-17"),
        make_task("later", due_date="2026-03-18"),
        make_task("past", due_date="2026-03-09"),
        make_task("broken", due_date="not a date"),
    ]
    ids = lambda window: [t.id for t in filter_tasks(tasks, admin, TaskFilters(date=window), now=now)]

    assert ids(DateWindow.TODAY) == ["today"]
    assert ids(DateWindow.WEEK) == ["today", "soon"]
    # Bare dates are midnight, so a task due today is already overdue by noon.
    assert ids(DateWindow.OVERDUE) == ["today", "past"]
    assert len(ids(DateWindow.ALL)) == 5


def test_assigned_scope(make_task, alice, now) -> None:
    tasks = _tasks(make_task)
    to_me = filter_tasks(tasks, alice, TaskFilters(assigned=AssignedScope.ASSIGNED_TO_ME), now=now)
    by_me = filter_tasks(tasks, alice, TaskFilters(assigned=AssignedScope.ASSIGNED_BY_ME), now=now)

    assert [t.id for t in to_me] == ["t1"]
    assert [t.id for t in by_me] == ["t2"]


def test_search_is_case_insensitive_across_fields(make_task, admin, now) -> None:
    tasks = [
        make_task("t1", title="Quarterly Review"),
        make_task("t2", description="check the REVIEW notes"),
        make_task("t3", brand="Lays"),
        make_task("t4", company_name="md inpex"),
    ]
    assert [t.id for t in filter_tasks(tasks, admin, TaskFilters(search="review"), now=now)] == ["t1", "t2"]
    assert [t.id for t in filter_tasks(tasks, admin, TaskFilters(search="lays"), now=now)] == ["t3"]
    assert [t.id for t in filter_tasks(tasks, admin, TaskFilters(search="INPEX"), now=now)] == ["t4"]


def test_company_and_brand_filters(make_task, admin, now) -> None:
    tasks = [
        make_task("t1", company_name="acs", brand="Lays"),
        make_task("t2", company_name="acs", brand="Pepsi"),
        make_task("t3", company_name="md inpex", brand="Inpex Pro"),
    ]
    filters = TaskFilters(company="acs", brand="Pepsi")
    assert [t.id for t in filter_tasks(tasks, admin, filters, now=now)] == ["t2"]
    assert "Pepsi" in available_brands("acs")
    assert available_brands("unknown") == ()


def test_stats_follow_visibility(make_task, alice, admin, now) -> None:
    tasks = _tasks(make_task)

    assert compute_stats(tasks, admin, now=now) == {"total": 4, "completed": 1, "pending": 3, "overdue": 1}
    assert compute_stats(tasks, alice, now=now) == {"total": 2, "completed": 0, "pending": 2, "overdue": 1}


def test_active_filter_count_ignores_brand_and_search() -> None:
    assert active_filter_count(TaskFilters()) == 0
    filters = TaskFilters(status="pending", date=DateWindow.WEEK, brand="Lays", search="x")
    assert active_filter_count(filters) == 2
