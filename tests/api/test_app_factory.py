"""Tests for create_app wiring: store selection, route seeding, scheduler jobs."""
import json

from fastapi.testclient import TestClient

from cragrank.main import Services, build_store, create_app


def test_json_store_when_no_database_url(test_config):
    test_config.database_url = ""
    assert build_store(test_config).backend == "json"


def test_sql_store_when_database_url_set(test_config, tmp_path):
    test_config.database_url = f"sqlite:///{tmp_path / 'app.db'}"
    store = build_store(test_config)
    assert store.backend == "sql"
    store.set("routes/a", {"name": "a", "points": 10})
    assert store.get("routes/a").data["points"] == 10


def test_create_app_seeds_routes(test_config, tmp_path):
    (tmp_path / "routes.json").write_text(json.dumps([{"id": "slab", "name": "Slab", "points": 20}]))
    app = create_app(test_config)
    with TestClient(app) as c:
        routes = c.get("/api/routes").json()["routes"]
    assert routes == [{"id": "slab", "name": "Slab", "points": 20, "completion_count": 0}]


def test_bad_seed_file_does_not_block_startup(test_config, tmp_path):
    (tmp_path / "routes.json").write_text(json.dumps([{"id": "slab", "points": -5}]))
    with TestClient(create_app(test_config)) as c:
        assert c.get("/health").status_code == 200


def test_scheduler_jobs(test_config, json_store):
    test_config.recount_interval_minutes = 15
    services = Services(test_config, store=json_store)
    services.start_scheduler()
    try:
        assert services.scheduler.running
        assert set(services.scheduler.job_ids()) == {"ranking-recompute", "completion-recount"}
    finally:
        services.scheduler.shutdown()


def test_recount_job_off_by_default(test_config, json_store):
    services = Services(test_config, store=json_store)
    services.start_scheduler()
    try:
        assert services.scheduler.job_ids() == ["ranking-recompute"]
    finally:
        services.scheduler.shutdown()
