from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.domain.enums import UserRole
from taskboard.infra.db import init_db, make_engine
from taskboard.infra.models import LocalStateModel
from taskboard.infra.session_store import SessionStore


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture()
def store(session_factory) -> SessionStore:
    return SessionStore(session_factory)


def test_empty_store(store) -> None:
    assert store.token is None
    assert store.current_user() is None
    assert store.sidebar_collapsed() is False


def test_token_and_profile_round_trip(store, admin) -> None:
    store.set_token("jwt-1")
    store.set_token("jwt-2")
    store.save_current_user(admin)

    assert store.token == "jwt-2"
    user = store.current_user()
    assert user.email == admin.email
    assert user.role == UserRole.ADMIN


def test_clear_keeps_ui_preferences(store, alice) -> None:
    store.set_token("jwt")
    store.save_current_user(alice)
    store.set_sidebar_collapsed(True)

    store.clear()

    assert store.token is None
    assert store.current_user() is None
    assert store.sidebar_collapsed() is True


def test_corrupt_profile_reads_as_missing(store, session_factory) -> None:
    with session_factory() as session:
        session.add(LocalStateModel(key="currentUser", value="{not json"))
        session.commit()

    assert store.current_user() is None


def test_in_memory_sqlite_shares_one_connection() -> None:
    engine = make_engine("sqlite://")
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        engine.dispose()
