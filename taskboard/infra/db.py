from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.config import SETTINGS


def make_engine(url: str):
    options = {"pool_pre_ping": True}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        # Sessions may be opened off the thread that created the engine.
        options["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    return create_engine(url, **options)


engine = make_engine(SETTINGS.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def init_db(bind=None) -> None:
    from . import models  # noqa: F401  registers tables on Base.metadata

    target = bind or engine
    with target.connect() as connection:
        connection.execute(text("SELECT 1"))
    Base.metadata.create_all(target)
