"""Tests for route seeding from JSON."""
import json

import pytest

from cragrank.domain.invariant import MalformedRecordError
from cragrank.infrastructure.database.seed import seed_routes


@pytest.fixture
def routes_file(tmp_path):
    path = tmp_path / "routes.json"
    path.write_text(json.dumps([
        {"id": "a", "name": "Route A", "points": 60},
        {"id": "b", "name": "Route B", "points": 40},
    ]))
    return str(path)


class TestSeedRoutes:
    def test_missing_file_seeds_nothing(self, store, tmp_path):
        assert seed_routes(store, str(tmp_path / "nope.json")) == 0

    def test_creates_routes_with_zero_counter(self, store, routes_file):
        assert seed_routes(store, routes_file) == 2
        assert store.get("routes/a").data == {"name": "Route A", "points": 60, "completion_count": 0}

    def test_second_seed_is_noop(self, store, routes_file):
        seed_routes(store, routes_file)
        assert seed_routes(store, routes_file) == 0

    def test_reseed_keeps_completion_count(self, store, routes_file, tmp_path):
        seed_routes(store, routes_file)
        store.merge("routes/a", {"completion_count": 4})
        with open(routes_file, "w") as f:
            json.dump([{"id": "a", "name": "Route A", "points": 80}], f)
        assert seed_routes(store, routes_file) == 1
        assert store.get("routes/a").data == {"name": "Route A", "points": 80, "completion_count": 4}

    def test_negative_points_rejected(self, store, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"id": "x", "points": -1}]))
        with pytest.raises(MalformedRecordError):
            seed_routes(store, str(path))
