"""Read-only Google Calendar adapter.

Lists the primary calendar's events for one month through the Calendar v3
REST API and projects each event onto the local task shape. The OAuth consent
flow lives outside this package: callers hand in an access token obtained
for the ``calendar.readonly`` scope.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Optional

import requests

from taskboard.domain.dates import UTC, parse_timestamp, to_iso, utcnow
from taskboard.domain.entities import EXTERNAL_ID_PREFIX, TaskEntity, UserEntity, UserRef
from taskboard.domain.enums import TaskPriority, TaskStatus, TaskType
from taskboard.domain.errors import (
    ApiError,
    AuthenticationError,
    CalendarNotConfigured,
    NetworkError,
)

logger = logging.getLogger(__name__)

CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3/"
READONLY_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"
EXTERNAL_COMPANY = "Google Calendar"
EXTERNAL_TAG = "google-event"
MAX_RESULTS = 2500

PRIORITY_BY_COLOR = {
    "11": TaskPriority.HIGH,
    "5": TaskPriority.MEDIUM,
    "10": TaskPriority.LOW,
}


def month_bounds(year: int, month: int, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        next_start = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        next_start = datetime(year, month + 1, 1, tzinfo=tz)
    return start, next_start - timedelta(milliseconds=1)


def _event_start(event: dict[str, Any]) -> Optional[str]:
    start = event.get("start") or {}
    if start.get("dateTime"):
        parsed = parse_timestamp(start["dateTime"])
        return to_iso(parsed) if parsed else None
    if start.get("date"):
        return str(start["date"])
    return None


def _event_end(event: dict[str, Any], tz: tzinfo) -> Optional[datetime]:
    # All-day events carry an exclusive end date: midnight of that day is the end.
    end = event.get("end") or {}
    if end.get("dateTime"):
        return parse_timestamp(end["dateTime"], tz)
    if end.get("date"):
        try:
            return datetime.combine(date.fromisoformat(end["date"]), time.min, tzinfo=tz)
        except ValueError:
            return None
    return None


def derive_status(event: dict[str, Any], now: datetime | None = None, tz: tzinfo = UTC) -> TaskStatus:
    if event.get("status") != "confirmed":
        return TaskStatus.PENDING
    current = now or utcnow()
    ends_at = _event_end(event, tz) or parse_timestamp(_event_start(event), tz)
    if ends_at is None:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.COMPLETED if ends_at < current else TaskStatus.IN_PROGRESS


def event_to_task(
    event: dict[str, Any],
    current_user: UserEntity | None,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> TaskEntity:
    current = now or utcnow()
    event_id = event.get("id") or uuid.uuid4().hex
    organizer = (event.get("organizer") or {}).get("email")
    return TaskEntity(
        id=f"{EXTERNAL_ID_PREFIX}{event_id}",
        title=event.get("summary") or "Google Calendar event",
        description=event.get("description"),
        due_date=_event_start(event) or to_iso(current),
        status=derive_status(event, current, tz),
        priority=PRIORITY_BY_COLOR.get(str(event.get("colorId")), TaskPriority.MEDIUM),
        assigned_to=current_user.as_ref() if current_user else UserRef(email=""),
        assigned_by=UserRef(email=organizer or "google-calendar"),
        company_name=EXTERNAL_COMPANY,
        task_type=TaskType.REGULAR,
        created_at=event.get("created") or to_iso(current),
        updated_at=event.get("updated"),
        tags=(EXTERNAL_TAG,),
        external_link=event.get("htmlLink"),
    )


class GoogleCalendarAdapter:
    def __init__(
        self,
        client_id: str | None,
        api_key: str | None,
        calendar_id: str = "primary",
        *,
        timeout: float = 15.0,
        session: requests.Session | None = None,
        base_url: str = CALENDAR_API_URL,
    ) -> None:
        self.client_id = client_id
        self._api_key = api_key
        self._calendar_id = calendar_id
        self._timeout = timeout
        self._session = session or requests.Session()
        self._base_url = base_url
        self._access_token: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self._api_key)

    @property
    def is_signed_in(self) -> bool:
        return self._access_token is not None

    def sign_in(self, access_token: str) -> None:
        if not self.is_configured:
            raise CalendarNotConfigured(
                "Google Calendar integration is not configured. "
                "Set GOOGLE_CLIENT_ID and GOOGLE_API_KEY."
            )
        self._access_token = access_token

    def sign_out(self) -> None:
        self._access_token = None

    def list_month_events(self, year: int, month: int, tz: tzinfo = UTC) -> list[dict[str, Any]]:
        if not self.is_configured:
            raise CalendarNotConfigured("Google Calendar integration is not configured.")
        if not self.is_signed_in:
            raise AuthenticationError("Not signed in to Google Calendar")

        time_min, time_max = month_bounds(year, month, tz)
        url = f"{self._base_url}calendars/{self._calendar_id}/events"
        params: dict[str, Any] = {
            "timeMin": to_iso(time_min),
            "timeMax": to_iso(time_max),
            "showDeleted": "false",
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": MAX_RESULTS,
            "key": self._api_key,
        }
        events: list[dict[str, Any]] = []
        while True:
            body = self._get(url, params)
            events.extend(item for item in body.get("items") or [] if isinstance(item, dict))
            page_token = body.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        logger.info("Loaded %s Google events for %04d-%02d", len(events), year, month)
        return [event for event in events if event.get("start")]

    def month_tasks(
        self,
        year: int,
        month: int,
        current_user: UserEntity | None,
        tz: tzinfo = UTC,
        now: datetime | None = None,
    ) -> list[TaskEntity]:
        return [
            event_to_task(event, current_user, now, tz)
            for event in self.list_month_events(year, month, tz)
        ]

    def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._access_token}", "Accept": "application/json"}
        try:
            response = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise NetworkError(str(exc) or "Network error") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 400:
            error = body.get("error") if isinstance(body.get("error"), dict) else {}
            message = error.get("message") or f"Google Calendar request failed ({response.status_code})"
            if response.status_code == 401:
                self.sign_out()
                raise AuthenticationError(message, status=401, payload=body)
            raise ApiError(message, status=response.status_code, payload=body)
        return body
