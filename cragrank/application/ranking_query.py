"""Read paths for the ranking: a fresh recomputation and the published one."""
import logging
from typing import List

from cragrank.application.ranking_engine import compute_standings
from cragrank.domain.climber import Standing
from cragrank.domain.invariant import MalformedRecordError
from cragrank.infrastructure.store.record_store import USERS, RecordStore

log = logging.getLogger("cragrank.ranking")


class RankingQueryService:
    """On-demand ranking. Computes like the scheduled run but never writes."""

    def __init__(self, store: RecordStore, max_workers: int = 8):
        self._store = store
        self._max_workers = max_workers

    def current_ranking(self) -> List[dict]:
        """
        Recompute every climber's standing now. Malformed data and store
        failures propagate to the caller. Counters that have not settled
        yet are read as they are.
        """
        computation = compute_standings(self._store, self._max_workers, strict=True)
        return [s.to_dict() for s in computation.standings]

    def published_ranking(self, limit: int | None = None) -> List[dict]:
        """Standings as of the last committed run, by position ascending."""
        standings = []
        for record in self._store.query(USERS):
            try:
                standings.append(Standing.from_record(record))
            except MalformedRecordError as exc:
                log.warning("Leaderboard skipping %s: %s", record.ref, exc)
        # never-ranked users (no position yet) go last
        standings.sort(key=lambda s: (s.position is None, s.position or 0, s.climber_id))
        if limit is not None:
            standings = standings[:limit]
        return [s.to_dict() for s in standings]
