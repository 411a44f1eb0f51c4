from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from taskboard.config import PROJECT_ROOT, SETTINGS, Settings


def build_handlers(settings: Settings, verbose: bool = False) -> list[logging.Handler]:
    log_dir = PROJECT_ROOT / settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_dir / settings.log_file, maxBytes=2_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(settings.log_level.upper())

    # Console shows warnings and up unless verbose.
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)

    return [file_handler, console_handler]


def setup_logging(settings: Settings = SETTINGS, verbose: bool = False) -> None:
    handlers = build_handlers(settings, verbose)
    logging.basicConfig(
        level=min(handler.level for handler in handlers),
        handlers=handlers,
    )
    # requests' connection pool chatter is only useful when debugging the pool.
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)
