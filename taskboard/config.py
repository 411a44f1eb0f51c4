from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "taskboard.log"
    request_timeout: float = 15.0
    timezone: str = "UTC"
    google_client_id: str | None = None
    google_api_key: str | None = None
    google_calendar_id: str = "primary"

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_api_key)


def _optional(name: str) -> str | None:
    return os.getenv(name, "").strip() or None


def _float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


load_env()

API_BASE_URL = os.getenv("API_BASE_URL", "").strip() or "http://localhost:9000/api/"
if not API_BASE_URL.endswith("/"):
    API_BASE_URL += "/"

DATABASE_URL = (
    os.getenv("DATABASE_URL", "").strip()
    or f"sqlite:///{PROJECT_ROOT / 'taskboard.sqlite3'}"
)

SETTINGS = Settings(
    api_base_url=API_BASE_URL,
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    log_file=os.getenv("LOG_FILE", "").strip() or "taskboard.log",
    request_timeout=_float("REQUEST_TIMEOUT", 15.0),
    timezone=os.getenv("TASKBOARD_TIMEZONE", "UTC").strip() or "UTC",
    google_client_id=_optional("GOOGLE_CLIENT_ID"),
    google_api_key=_optional("GOOGLE_API_KEY"),
    google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary").strip() or "primary",
)
