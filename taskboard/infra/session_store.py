from __future__ import annotations

import json
import logging
from typing import Optional

from taskboard.domain.entities import UserEntity

from .db import SessionLocal
from .models import LocalStateModel
from .user_gateway import to_user_entity, user_to_dict

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
CURRENT_USER_KEY = "currentUser"
SIDEBAR_COLLAPSED_KEY = "sidebarCollapsed"


class SessionStore:
    """Locally persisted client state: bearer token, profile, UI preferences.

    Best effort only. The backend is re-queried on start, so nothing read
    from here is treated as authoritative.
    """

    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def _get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(LocalStateModel, key)
            return row.value if row else None

    def _set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            row = session.get(LocalStateModel, key)
            if row is None:
                session.add(LocalStateModel(key=key, value=value))
            else:
                row.value = value
            session.commit()

    def _delete(self, *keys: str) -> None:
        with self._session_factory() as session:
            for key in keys:
                row = session.get(LocalStateModel, key)
                if row is not None:
                    session.delete(row)
            session.commit()

    @property
    def token(self) -> Optional[str]:
        return self._get(TOKEN_KEY) or None

    def set_token(self, token: str) -> None:
        self._set(TOKEN_KEY, token)

    def current_user(self) -> Optional[UserEntity]:
        raw = self._get(CURRENT_USER_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored current user is not valid JSON; ignoring it")
            return None
        if not isinstance(data, dict):
            return None
        return to_user_entity(data)

    def save_current_user(self, user: UserEntity) -> None:
        self._set(CURRENT_USER_KEY, json.dumps(user_to_dict(user)))

    def sidebar_collapsed(self) -> bool:
        return self._get(SIDEBAR_COLLAPSED_KEY) == "true"

    def set_sidebar_collapsed(self, collapsed: bool) -> None:
        self._set(SIDEBAR_COLLAPSED_KEY, "true" if collapsed else "false")

    def clear(self) -> None:
        self._delete(TOKEN_KEY, CURRENT_USER_KEY)
