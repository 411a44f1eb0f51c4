from __future__ import annotations

import argparse
import getpass
import logging
import sys

from taskboard.config import SETTINGS
from taskboard.domain.dates import format_date, is_overdue, utcnow, zone
from taskboard.domain.enums import DateWindow, StatFilter
from taskboard.domain.filters import TaskFilters
from taskboard.infra.db import init_db
from taskboard.infra.google_calendar import GoogleCalendarAdapter
from taskboard.infra.http import ApiClient
from taskboard.infra.logging import setup_logging
from taskboard.infra.session_store import SessionStore
from taskboard.infra.task_gateway import TaskGateway
from taskboard.infra.user_gateway import UserGateway
from taskboard.services.auth_service import AuthService
from taskboard.services.calendar_service import CalendarService
from taskboard.services.notifications import NotificationLevel, ToastNotifier
from taskboard.services.task_service import TaskService
from taskboard.services.team_service import TeamService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskboard", description="Task dashboard client")
    parser.add_argument("--email", help="Log in with this email before loading tasks")
    parser.add_argument("--logout", action="store_true", help="Forget the stored session and exit")
    parser.add_argument("--search", default=None, help="Case-insensitive search over title, description, company, brand")
    parser.add_argument("--stat", choices=[s.value for s in StatFilter], default=StatFilter.ALL.value)
    parser.add_argument("--date", choices=[d.value for d in DateWindow], default=DateWindow.ALL.value)
    parser.add_argument("--google-token", default=None, help="Google OAuth access token for calendar events")
    parser.add_argument("-v", "--verbose", action="store_true", help="Echo debug logging to the console")
    return parser


def _print_tasks(tasks, tz) -> None:
    now = utcnow()
    for task in tasks:
        marker = "!" if is_overdue(task.due_date, task.status, now, tz) else " "
        print(
            f"{marker} {format_date(task.due_date, tz):>12}  {task.status.value:<11} "
            f"{task.priority.value:<6} {task.title}  [{task.assigned_to.display_name}]"
        )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(SETTINGS, verbose=args.verbose)
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.error("Local state database unavailable: %s", exc)
        print(f"DB error: {exc}", file=sys.stderr)
        return 1

    tz = zone(SETTINGS.timezone)
    notifier = ToastNotifier()
    store = SessionStore()
    client = ApiClient(SETTINGS.api_base_url, token_provider=lambda: store.token, timeout=SETTINGS.request_timeout)
    users = UserGateway(client)
    auth = AuthService(users, store, notifier)
    client.add_unauthorized_hook(auth.handle_unauthorized)

    if args.logout:
        auth.logout()
        print("Logged out")
        return 0

    if args.email:
        if auth.login(args.email, getpass.getpass("Password: ")) is None:
            print(notifier.last.message if notifier.last else "Login failed", file=sys.stderr)
            return 1
    elif auth.restore_session() is None:
        print("Not logged in. Run with --email to sign in.", file=sys.stderr)
        return 1

    team = TeamService(users, notifier)
    tasks = TaskService(TaskGateway(client), notifier, auth.current_user, users=team.load_users(), tz=tz)
    if not tasks.refresh():
        print(notifier.last.message, file=sys.stderr)
        return 1

    stats = tasks.stats()
    print(
        f"{auth.current_user.name} ({auth.current_user.role.value}): "
        f"{stats['total']} total, {stats['completed']} completed, "
        f"{stats['pending']} pending, {stats['overdue']} overdue"
    )
    filters = TaskFilters(stat=StatFilter(args.stat), date=DateWindow(args.date), search=args.search)
    _print_tasks(tasks.visible(filters), tz)

    if args.google_token:
        adapter = GoogleCalendarAdapter(
            SETTINGS.google_client_id,
            SETTINGS.google_api_key,
            SETTINGS.google_calendar_id,
            timeout=SETTINGS.request_timeout,
        )
        calendar = CalendarService(adapter, tasks, notifier, tz=tz)
        if calendar.sign_in(args.google_token):
            print(f"\nCalendar {calendar.year:04d}-{calendar.month:02d} (Google events)")
            _print_tasks(calendar.external_tasks, tz)

    for message in notifier.messages(NotificationLevel.ERROR):
        print(f"error: {message}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
