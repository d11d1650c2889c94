"""JsonRecordStore -- file persistence specifics."""
import json
import threading

from cragrank.infrastructure.store.json_record_store import JsonRecordStore


class TestPersistence:
    def test_writes_survive_reload(self, tmp_path):
        path = str(tmp_path / "store.json")
        JsonRecordStore(path).set("routes/r1", {"points": 60})
        assert JsonRecordStore(path).get("routes/r1").data == {"points": 60}

    def test_revision_survives_reload(self, tmp_path):
        path = str(tmp_path / "store.json")
        first = JsonRecordStore(path)
        first.set("routes/r1", {"points": 60})
        rev = first.get("routes/r1").revision
        assert JsonRecordStore(path).get("routes/r1").revision == rev

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "store.json"
        JsonRecordStore(str(path)).set("users/u1", {"name": "A"})
        assert path.exists()

    def test_no_temp_file_left_behind(self, tmp_path):
        path = tmp_path / "store.json"
        JsonRecordStore(str(path)).set("users/u1", {"name": "A"})
        assert not (tmp_path / "store.json.tmp").exists()


class TestLoad:
    def test_missing_file_is_empty(self, tmp_path):
        store = JsonRecordStore(str(tmp_path / "missing.json"))
        assert store.query("routes") == []

    def test_corrupted_file_is_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{invalid json}")
        assert JsonRecordStore(str(path)).query("routes") == []

    def test_malformed_entries_skipped(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"records": {
            "routes/ok": {"data": {"points": 1}, "revision": "a"},
            "routes/bad": "not-a-dict",
        }}))
        store = JsonRecordStore(str(path))
        assert [r.id for r in store.query("routes")] == ["ok"]

    def test_missing_revision_is_generated(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"records": {"routes/r1": {"data": {"points": 1}}}}))
        assert JsonRecordStore(str(path)).get("routes/r1").revision


class TestConcurrency:
    def test_concurrent_increments_do_not_lose_updates(self, tmp_path, monkeypatch):
        import cragrank.infrastructure.store.record_store as rs
        monkeypatch.setattr(rs.time, "sleep", lambda s: None)
        store = JsonRecordStore(str(tmp_path / "store.json"), max_attempts=200)
        store.set("routes/r1", {"n": 0})

        def bump(txn):
            n = txn.get("routes/r1").data["n"]
            txn.merge("routes/r1", {"n": n + 1})

        threads = [threading.Thread(target=store.run_transaction, args=(bump,)) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get("routes/r1").data["n"] == 10
