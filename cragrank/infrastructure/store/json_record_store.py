"""Record store persisted to a single JSON file (development fallback)."""
import copy
import json
import logging
import os
import threading
from typing import Dict, List, Optional

from cragrank.infrastructure.store.record_store import (
    Filter,
    QueryRead,
    Record,
    RecordStore,
    Transaction,
    Write,
    group_of,
    new_revision,
)

log = logging.getLogger("cragrank.store")


class JsonRecordStore(RecordStore):
    """
    Whole store held in memory and flushed to disk on each commit.
    One lock serialises validate-and-apply, so concurrent transactions on
    the same record see each other as conflicts rather than lost updates.
    """

    backend = "json"

    def __init__(self, data_path: str = "data/store.json", max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self._data_path = data_path
        self._lock = threading.RLock()
        # ref -> {"data": {...}, "revision": "..."}
        self._records: Dict[str, dict] = {}
        self._load()

    # -- hooks -----------------------------------------------------------

    def _read(self, ref: str) -> Optional[Record]:
        with self._lock:
            entry = self._records.get(ref)
            if entry is None:
                return None
            return Record(ref, copy.deepcopy(entry["data"]), entry["revision"])

    def _scan(self, scope: str, name: str, where: Optional[Filter]) -> List[Record]:
        with self._lock:
            results = []
            for ref in sorted(self._records):
                collection = ref.rsplit("/", 1)[0]
                if scope == "collection" and collection != name:
                    continue
                if scope == "group" and group_of(collection) != name:
                    continue
                entry = self._records[ref]
                if where is not None and not where.matches(entry["data"]):
                    continue
                results.append(Record(ref, copy.deepcopy(entry["data"]), entry["revision"]))
            return results

    def _commit(self, txn: Transaction) -> None:
        with self._lock:
            self.check_reads(txn, self._current_revision, self._rescan)
            staged = dict(self._records)
            for write in txn.writes:
                self._apply(staged, write)
            self._persist(staged)
            self._records = staged

    # -- internals -------------------------------------------------------

    def _current_revision(self, ref: str) -> Optional[str]:
        entry = self._records.get(ref)
        return entry["revision"] if entry else None

    def _rescan(self, q: QueryRead) -> Dict[str, str]:
        return {r.ref: r.revision for r in self._scan(q.scope, q.name, q.where)}

    @staticmethod
    def _apply(records: Dict[str, dict], write: Write) -> None:
        if write.kind == Write.DELETE:
            records.pop(write.ref, None)
            return
        if write.kind == Write.MERGE and write.ref in records:
            data = copy.deepcopy(records[write.ref]["data"])
            data.update(copy.deepcopy(write.fields))
        else:
            data = copy.deepcopy(write.fields)
        records[write.ref] = {"data": data, "revision": new_revision()}

    def _persist(self, records: Dict[str, dict]) -> None:
        directory = os.path.dirname(self._data_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self._data_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"records": records}, f, indent=2, ensure_ascii=False, sort_keys=True)
        os.replace(tmp_path, self._data_path)

    def _load(self) -> None:
        if not os.path.exists(self._data_path):
            return
        try:
            with open(self._data_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, IOError) as exc:
            log.warning("Ignoring unreadable store file %s: %s", self._data_path, exc)
            return
        records = raw.get("records", {}) if isinstance(raw, dict) else {}
        for ref, entry in records.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("data"), dict):
                log.warning("Skipping malformed entry %r in %s", ref, self._data_path)
                continue
            self._records[ref] = {
                "data": entry["data"],
                "revision": entry.get("revision") or new_revision(),
            }
