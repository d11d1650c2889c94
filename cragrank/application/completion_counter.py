"""Use case: keep Route.completion_count equal to its completed-log count."""
import logging
from typing import Dict

from cragrank.domain.enums import LogStyle
from cragrank.domain.invariant import RecordNotFoundError
from cragrank.infrastructure.store.record_store import (
    ROUTES,
    Filter,
    RecordStore,
    logs_collection,
    route_ref,
)

log = logging.getLogger("cragrank.counter")

COMPLETED = Filter("style", "!=", LogStyle.NONE.value)


def recount_completions(store: RecordStore, route_id: str, max_attempts: int | None = None) -> int:
    """
    Recount completed logs under a route and store the result on the route,
    as one read-count-write transaction. Re-running with nothing changed
    writes nothing. Returns the count.
    """
    ref = route_ref(route_id)

    def body(txn) -> int:
        route = txn.get(ref)
        if route is None:
            raise RecordNotFoundError(ref)
        count = len(txn.query(logs_collection(route_id), COMPLETED))
        if route.data.get("completion_count") != count:
            txn.merge(ref, {"completion_count": count})
        return count

    return store.run_transaction(body, max_attempts)


def handle_log_event(store: RecordStore, route_id: str, log_id: str,
                     max_attempts: int | None = None) -> int | None:
    """
    Trigger entry point for a created, updated or deleted log. Delivery is
    at-least-once, so duplicates just recount again. Failures are logged and
    reported as None; the next trigger or reconciliation corrects the count.
    """
    try:
        count = recount_completions(store, route_id, max_attempts)
    except Exception as exc:
        log.warning(
            "Recount failed for route %s (log %s): %s: %s",
            route_id, log_id, type(exc).__name__, exc,
        )
        return None
    log.debug("Route %s completion_count=%d after log %s", route_id, count, log_id)
    return count


def recount_all_routes(store: RecordStore, max_attempts: int | None = None) -> Dict[str, int]:
    """Reconcile every route's counter. Routes that fail are left out of the result."""
    counts: Dict[str, int] = {}
    for record in store.query(ROUTES):
        count = handle_log_event(store, record.id, "*", max_attempts)
        if count is not None:
            counts[record.id] = count
    log.info("Reconciled completion counts for %d route(s)", len(counts))
    return counts
