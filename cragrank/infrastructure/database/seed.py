"""Seed route records from a JSON file into the record store."""
import json
import logging
import os

from cragrank.domain.invariant import require_non_negative_number
from cragrank.infrastructure.store.record_store import RecordStore, route_ref

log = logging.getLogger("cragrank.seed")


def seed_routes(store: RecordStore, json_path: str) -> int:
    """Create or refresh routes listed in *json_path*.

    Expected format: [{"id": "...", "name": "...", "points": 60}, ...].
    Only name and points are written, so completion_count survives a
    re-seed. Unchanged routes are skipped. Returns the number written.
    """
    if not os.path.exists(json_path):
        return 0

    with open(json_path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    written = 0
    for item in raw:
        route_id = str(item["id"])
        ref = route_ref(route_id)
        fields = {
            "name": item.get("name", route_id),
            "points": require_non_negative_number(ref, "points", item.get("points")),
        }

        def body(txn, ref=ref, fields=fields) -> bool:
            current = txn.get(ref)
            if current is None:
                txn.set(ref, {**fields, "completion_count": 0})
                return True
            if all(current.data.get(k) == v for k, v in fields.items()):
                return False
            txn.merge(ref, fields)
            return True

        if store.run_transaction(body):
            written += 1

    if written:
        log.info("Seeded %d route(s) from %s", written, json_path)
    return written
