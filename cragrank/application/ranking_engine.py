"""Use case: score every climber and publish the ranking.

Each run is independent: climbers are listed, scored concurrently from their
logs and the current route counters, ranked, and the whole ranking is merged
onto the User records in a single transaction.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from cragrank.domain.climber import Standing
from cragrank.domain.invariant import MalformedRecordError, RecordNotFoundError
from cragrank.domain.log import Log
from cragrank.domain.ranking import rank_standings
from cragrank.domain.route import Route
from cragrank.domain.scoring import Ascent, ClimberScore, ScoringRules
from cragrank.infrastructure.store.record_store import (
    LOGS,
    USERS,
    Filter,
    RecordStore,
    route_ref,
    user_ref,
)

log = logging.getLogger("cragrank.ranking")


class RankingCommitError(RuntimeError):
    """The ranking write failed; the previous ranking is still in place."""


class ClimberGap:
    """A climber whose score could not be computed this run."""

    def __init__(self, climber_id: str, error: Exception):
        self.climber_id = climber_id
        self.error_type = type(error).__name__
        self.message = str(error)

    def to_dict(self) -> dict:
        return {"climber_id": self.climber_id, "error": self.error_type, "message": self.message}


class RankingComputation:
    """Ranked standings plus which climbers were freshly scored.

    omitted holds gap climbers with no usable prior standing; they are left
    out of the ranking and their stale position is cleared on commit.
    """

    def __init__(self, standings: List[Standing], fresh: set, gaps: List[ClimberGap],
                 omitted: set | None = None):
        self.standings = standings
        self.fresh = fresh
        self.gaps = gaps
        self.omitted = omitted or set()


def score_climber(store: RecordStore, climber_id: str) -> ClimberScore:
    """Fetch a climber's logs across all routes and apply the scoring rules."""
    routes: Dict[str, Route] = {}
    ascents = []
    for record in store.query_group(LOGS, Filter("climber_id", "==", climber_id)):
        entry = Log.from_record(record)
        if not entry.is_completion:
            continue
        route = routes.get(entry.route_id)
        if route is None:
            route_record = store.get(route_ref(entry.route_id))
            if route_record is None:
                raise RecordNotFoundError(route_ref(entry.route_id))
            route = routes[entry.route_id] = Route.from_record(route_record)
        ascents.append(Ascent(entry, route))
    return ScoringRules.score_ascents(ascents)


def compute_standings(store: RecordStore, max_workers: int = 8, strict: bool = False) -> RankingComputation:
    """
    Score and rank every User.

    strict=True: the first failure propagates (on-demand callers see it).
    strict=False: a failing climber becomes a gap and is ranked on the
    climbed/points persisted by the last successful run. A gap climber
    whose persisted standing is itself malformed is omitted.
    """
    users = store.query(USERS)
    if not users:
        return RankingComputation([], set(), [])

    fresh: List[Standing] = []
    gaps: List[ClimberGap] = []
    previous: List[Standing] = []
    omitted = set()

    workers = max(1, min(max_workers, len(users)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cragrank-score") as pool:
        futures = {pool.submit(score_climber, store, u.id): u for u in users}
        for future in as_completed(futures):
            user = futures[future]
            try:
                score = future.result()
            except Exception as exc:
                if strict:
                    for pending in futures:
                        pending.cancel()
                    raise
                gaps.append(ClimberGap(user.id, exc))
                log.warning(
                    "Skipping climber %s this run: %s: %s", user.id, type(exc).__name__, exc
                )
                try:
                    previous.append(Standing.from_record(user))
                except MalformedRecordError as bad:
                    log.warning("Climber %s has no usable prior standing: %s", user.id, bad)
                    omitted.add(user.id)
                continue
            fresh.append(
                Standing(user.id, user.data.get("name") or "", score.climbed, score.points)
            )

    ranked = rank_standings(fresh + previous)
    return RankingComputation(ranked, {s.climber_id for s in fresh}, gaps, omitted)


class RankingRunReport:
    def __init__(self, computation: RankingComputation, duration_ms: float):
        self.climbers = len(computation.standings)
        self.scored = len(computation.fresh)
        self.gaps = computation.gaps
        self.duration_ms = round(duration_ms, 1)
        self.finished_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        return {
            "committed": True,
            "climbers": self.climbers,
            "scored": self.scored,
            "gaps": [g.to_dict() for g in self.gaps],
            "duration_ms": self.duration_ms,
            "finished_at": self.finished_at,
        }


class RankingEngine:
    """Scheduled full recomputation. Only the final write is serialised."""

    def __init__(
        self,
        store: RecordStore,
        max_workers: int = 8,
        max_attempts: int | None = None,
        audit: Optional[Callable[..., None]] = None,
    ):
        self._store = store
        self._max_workers = max_workers
        self._max_attempts = max_attempts
        self._audit = audit

    def compute(self, strict: bool = False) -> RankingComputation:
        return compute_standings(self._store, self._max_workers, strict=strict)

    def run(self) -> RankingRunReport:
        """Recompute and commit. Raises RankingCommitError if nothing was written."""
        started = time.monotonic()
        computation = self.compute(strict=False)

        def body(txn) -> None:
            for standing in computation.standings:
                if standing.climber_id in computation.fresh:
                    txn.merge(user_ref(standing.climber_id), standing.to_fields())
                else:
                    txn.merge(user_ref(standing.climber_id), {"position": standing.position})
            for climber_id in sorted(computation.omitted):
                txn.merge(user_ref(climber_id), {"position": None})

        try:
            self._store.run_transaction(body, self._max_attempts)
        except Exception as exc:
            log.error("Ranking commit failed, keeping previous ranking: %s: %s",
                      type(exc).__name__, exc)
            self._record("ranking_discarded", {
                "climbers": len(computation.standings),
                "error": f"{type(exc).__name__}: {exc}",
            })
            raise RankingCommitError(str(exc)) from exc

        report = RankingRunReport(computation, (time.monotonic() - started) * 1000)
        log.info(
            "Ranking committed: %d climber(s), %d scored, %d gap(s) in %.1f ms",
            report.climbers, report.scored, len(report.gaps), report.duration_ms,
        )
        self._record("ranking_committed", {
            "climbers": report.climbers,
            "scored": report.scored,
            "gaps": [g.climber_id for g in report.gaps],
        })
        return report

    def _record(self, action: str, payload: dict) -> None:
        if self._audit is None:
            return
        try:
            self._audit(action, None, payload)
        except OSError as exc:
            log.warning("Audit write failed for %s: %s", action, exc)
