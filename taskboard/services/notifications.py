from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


class Notifier(Protocol):
    def success(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...


class ToastNotifier:
    def __init__(self, limit: int = 20) -> None:
        self._recent: deque[Notification] = deque(maxlen=limit)

    @property
    def recent(self) -> list[Notification]:
        return list(self._recent)

    @property
    def last(self) -> Notification | None:
        return self._recent[-1] if self._recent else None

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        return [n.message for n in self._recent if level is None or n.level == level]

    def clear(self) -> None:
        self._recent.clear()

    def _push(self, level: NotificationLevel, message: str) -> None:
        self._recent.append(Notification(level, message))
        log_level = logging.WARNING if level == NotificationLevel.ERROR else logging.INFO
        logger.log(log_level, "[%s] %s", level.value, message)

    def success(self, message: str) -> None:
        self._push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self._push(NotificationLevel.ERROR, message)

    def info(self, message: str) -> None:
        self._push(NotificationLevel.INFO, message)
