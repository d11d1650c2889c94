"""Tests for environment-driven Config."""
import pytest

from cragrank.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DATABASE_URL", "DATA_DIR", "RANKING_INTERVAL_MINUTES", "RECOUNT_INTERVAL_MINUTES",
        "RANKING_MAX_WORKERS", "TRANSACTION_MAX_ATTEMPTS", "SCHEDULER_ENABLED",
        "ADMIN_API_KEY", "ALLOWED_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config()
    assert config.database_url == ""
    assert config.persistence == "json"
    assert config.ranking_interval_minutes == 30
    assert config.recount_interval_minutes == 0
    assert config.ranking_max_workers == 8
    assert config.transaction_max_attempts == 5
    assert config.scheduler_enabled is True
    assert config.allowed_origins == ["*"]
    assert config.routes_seed_path.endswith("routes.json")


def test_postgres_scheme_normalised(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db.example/crag")
    config = Config()
    assert config.database_url == "postgresql://u:p@db.example/crag"
    assert config.persistence == "sql"


def test_data_dir_drives_store_path(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    assert Config().store_path == str(tmp_path / "store.json")


def test_bad_integer_raises(monkeypatch):
    monkeypatch.setenv("RANKING_INTERVAL_MINUTES", "soon")
    with pytest.raises(RuntimeError, match="RANKING_INTERVAL_MINUTES"):
        Config()


def test_workers_and_attempts_floor_at_one(monkeypatch):
    monkeypatch.setenv("RANKING_MAX_WORKERS", "0")
    monkeypatch.setenv("TRANSACTION_MAX_ATTEMPTS", "-3")
    config = Config()
    assert config.ranking_max_workers == 1
    assert config.transaction_max_attempts == 1


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("yes", True), ("ON", True)])
def test_scheduler_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("SCHEDULER_ENABLED", raw)
    assert Config().scheduler_enabled is expected


def test_allowed_origins_split(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    assert Config().allowed_origins == ["https://a.example", "https://b.example"]
