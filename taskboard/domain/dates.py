"""Timestamp helpers shared by display, overdue checks and calendar buckets.

Backend timestamps stay as raw strings on the entities and are parsed here on
demand, so an unparseable value degrades to "not overdue" / "Invalid Date"
instead of breaking a whole list.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .enums import TaskStatus

logger = logging.getLogger(__name__)

UTC = timezone.utc
INVALID_DATE = "Invalid Date"


def utcnow() -> datetime:
    return datetime.now(UTC)


def zone(name: str | None) -> tzinfo:
    if not name or name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return UTC


def _aware(value: datetime, tz: tzinfo) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=tz)


def parse_timestamp(value: object, tz: tzinfo = UTC) -> datetime | None:
    # A bare date is a calendar day in the user's zone, not a UTC instant.
    if value is None:
        return None
    if isinstance(value, datetime):
        return _aware(value, tz)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) == 10:
        try:
            return datetime.combine(date.fromisoformat(text), time.min, tzinfo=tz)
        except ValueError:
            return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _aware(datetime.fromisoformat(text), tz)
    except ValueError:
        return None


def calendar_date(value: object, tz: tzinfo = UTC) -> date | None:
    parsed = parse_timestamp(value, tz)
    if parsed is None:
        return None
    return parsed.astimezone(tz).date()


def is_overdue(
    due_date: object,
    status: object,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> bool:
    if status == TaskStatus.COMPLETED:
        return False
    due = parse_timestamp(due_date, tz)
    if due is None:
        return False
    current = _aware(now, UTC) if now is not None else utcnow()
    return due < current


def format_date(value: object, tz: tzinfo = UTC) -> str:
    parsed = parse_timestamp(value, tz)
    if parsed is None:
        return INVALID_DATE
    local = parsed.astimezone(tz)
    return f"{local:%b} {local.day}, {local.year}"


def format_input_date(value: object, tz: tzinfo = UTC) -> str:
    day = calendar_date(value, tz)
    return day.isoformat() if day else ""


def to_iso(value: datetime) -> str:
    """Render like JavaScript's toISOString: UTC, millisecond precision, Z suffix."""
    moment = _aware(value, UTC).astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
