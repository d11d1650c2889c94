"""Use cases at the climber-facing edge: logging routes and registering climbers."""
from typing import List

from cragrank.application.completion_counter import handle_log_event
from cragrank.domain.enums import LockStatus, LogStyle
from cragrank.domain.invariant import RecordNotFoundError
from cragrank.domain.log import Log
from cragrank.domain.route import Route
from cragrank.infrastructure.store.record_store import (
    LOGS,
    ROUTES,
    USERS,
    Filter,
    RecordStore,
    log_ref,
    route_ref,
    user_ref,
)


class LogService:
    """
    Writes logs and fires the completion-counter trigger for every change.
    User score fields are never touched here.
    """

    def __init__(self, store: RecordStore, max_attempts: int | None = None):
        self._store = store
        self._max_attempts = max_attempts

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def record_log(self, route_id: str, climber_id: str, style: str,
                   lock_status: str | None = None) -> dict:
        """Create or overwrite the climber's log on a route."""
        try:
            log_style = LogStyle(style)
        except ValueError:
            raise ValueError(f"Invalid style: {style}. Expected one of {LogStyle.values()}")
        status = None
        if lock_status is not None:
            try:
                status = LockStatus(lock_status)
            except ValueError:
                raise ValueError(f"Invalid lock_status: {lock_status}")

        if self._store.get(route_ref(route_id)) is None:
            raise RecordNotFoundError(route_ref(route_id))

        entry = Log(route_id=route_id, climber_id=climber_id, style=log_style, lock_status=status)
        self._store.set(log_ref(route_id, climber_id), entry.to_fields())
        count = handle_log_event(self._store, route_id, climber_id, self._max_attempts)
        return {
            "route_id": route_id,
            "climber_id": climber_id,
            "style": log_style.value,
            "lock_status": status.value if status else None,
            "completion_count": count,
        }

    def delete_log(self, route_id: str, climber_id: str) -> dict:
        ref = log_ref(route_id, climber_id)
        if self._store.get(ref) is None:
            raise RecordNotFoundError(ref)
        self._store.delete(ref)
        count = handle_log_event(self._store, route_id, climber_id, self._max_attempts)
        return {"route_id": route_id, "climber_id": climber_id, "completion_count": count}

    # ------------------------------------------------------------------
    # Climbers
    # ------------------------------------------------------------------

    def register_climber(self, climber_id: str, name: str) -> dict:
        """Create the User record at the bottom of the ranking, or rename it."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Climber name cannot be empty")
        ref = user_ref(climber_id)

        def body(txn) -> dict:
            existing = txn.get(ref)
            if existing is not None:
                txn.merge(ref, {"name": name})
                return {**existing.data, "id": climber_id, "name": name}
            position = len(txn.query(USERS))
            fields = {"name": name, "climbed": 0, "points": 0.0, "position": position}
            txn.set(ref, fields)
            return {**fields, "id": climber_id}

        return self._store.run_transaction(body, self._max_attempts)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def list_routes(self) -> List[dict]:
        return [Route.from_record(r).to_dict() for r in self._store.query(ROUTES)]

    def climber_routes(self, climber_id: str) -> List[dict]:
        """Every route, overlaid with this climber's style and lock status."""
        overlay = {}
        for record in self._store.query_group(LOGS, Filter("climber_id", "==", climber_id)):
            entry = Log.from_record(record)
            overlay[entry.route_id] = entry

        results = []
        for record in self._store.query(ROUTES):
            route = Route.from_record(record)
            entry = overlay.get(route.id)
            lock = entry.lock_status if entry and entry.lock_status else LockStatus.EDITABLE
            results.append({
                **route.to_dict(),
                "style": entry.style.value if entry else LogStyle.NONE.value,
                "lock_status": lock.value,
            })
        return results
