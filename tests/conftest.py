"""
Shared pytest fixtures for the cragrank test suite.

Strategy:
- Domain tests: pure in-memory, zero I/O.
- Store-backed tests: JsonRecordStore in a tmp directory and SqlRecordStore
  on a SQLite file in the same tmp directory. The `store` fixture runs a
  test once per backend.
- API tests: FastAPI TestClient over an app built with create_app() and a
  JSON store; the scheduler is disabled.
"""
import os

import pytest

# ---------------------------------------------------------------------------
# Ensure no real database or scheduler is touched during the test run
# ---------------------------------------------------------------------------
os.environ.pop("DATABASE_URL", None)
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("ADMIN_API_KEY", None)


from cragrank.domain.climber import Standing
from cragrank.domain.enums import LogStyle
from cragrank.domain.log import Log
from cragrank.domain.route import Route
from cragrank.infrastructure.store.record_store import (
    Record,
    log_ref,
    route_ref,
    user_ref,
)


# ---------------------------------------------------------------------------
# Domain helpers (reusable across many test modules)
# ---------------------------------------------------------------------------

def make_route(route_id="r1", points=60, completion_count=0, name="Test Route") -> Route:
    return Route(route_id=route_id, name=name, points=points, completion_count=completion_count)


def make_log(route_id="r1", climber_id="u1", style=LogStyle.REDPOINT) -> Log:
    return Log(route_id=route_id, climber_id=climber_id, style=style)


def make_standing(climber_id="u1", points=0.0, climbed=0, name="") -> Standing:
    return Standing(climber_id=climber_id, name=name, climbed=climbed, points=points)


def make_record(ref: str, **data) -> Record:
    return Record(ref, data, "rev-test")


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------

def add_route(store, route_id, points, completion_count=0, name=None):
    store.set(route_ref(route_id), {
        "name": name or route_id,
        "points": points,
        "completion_count": completion_count,
    })


def add_user(store, climber_id, name=None, **fields):
    store.set(user_ref(climber_id), {"name": name or climber_id, **fields})


def add_log(store, route_id, climber_id, style="redpoint", **extra):
    store.set(log_ref(route_id, climber_id), {"style": style, "climber_id": climber_id, **extra})


def user_fields(store, climber_id) -> dict:
    record = store.get(user_ref(climber_id))
    return record.data if record else {}


def is_ranked(standings) -> bool:
    """True if every adjacent pair respects the order and positions are 0..n-1."""
    for i, s in enumerate(standings):
        if s.position != i:
            return False
        if i == 0:
            continue
        prev = standings[i - 1]
        if prev.points < s.points:
            return False
        if prev.points == s.points and prev.climbed > s.climbed:
            return False
    return True


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def json_store(tmp_path):
    from cragrank.infrastructure.store.json_record_store import JsonRecordStore
    return JsonRecordStore(data_path=str(tmp_path / "store.json"))


@pytest.fixture
def sql_store(tmp_path):
    from cragrank.infrastructure.database.connection import (
        build_engine, create_tables, session_factory_for,
    )
    from cragrank.infrastructure.store.sql_record_store import SqlRecordStore

    engine = build_engine(f"sqlite:///{tmp_path / 'store.db'}")
    create_tables(engine)
    yield SqlRecordStore(session_factory_for(engine))
    engine.dispose()


@pytest.fixture(params=["json", "sql"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


# ---------------------------------------------------------------------------
# FastAPI TestClient over a JSON store in a temp directory
# ---------------------------------------------------------------------------

@pytest.fixture
def test_config(tmp_path):
    from cragrank.config import Config

    config = Config()
    config.data_dir = str(tmp_path)
    config.scheduler_enabled = False
    config.admin_api_key = ""
    return config


@pytest.fixture
def app_store(json_store):
    return json_store


@pytest.fixture
def client(test_config, app_store, monkeypatch, tmp_path):
    import cragrank.infrastructure.audit as audit_mod
    from fastapi.testclient import TestClient
    from cragrank.main import create_app

    monkeypatch.setattr(audit_mod, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(audit_mod, "LOG_FILE", tmp_path / "logs" / "audit.log")

    app = create_app(test_config, store=app_store, seed=False)
    with TestClient(app) as c:
        yield c
