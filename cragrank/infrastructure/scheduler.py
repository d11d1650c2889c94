"""APScheduler wrapper for the periodic ranking and reconciliation jobs."""
import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

log = logging.getLogger("cragrank.scheduler")


class RankingScheduler:
    """Runs jobs on fixed intervals in background threads.

    Overlapping runs are allowed (max_instances=2): a slow run finishes and
    commits while the next tick starts its own pass.
    """

    def __init__(self) -> None:
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True

    def shutdown(self) -> None:
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False

    def schedule_every(self, job_id: str, func: Callable[[], object], *, minutes: int) -> None:
        if minutes <= 0:
            raise ValueError(f"Interval for {job_id} must be positive, got {minutes}")
        self._scheduler.add_job(
            _guarded(job_id, func),
            trigger=IntervalTrigger(minutes=minutes),
            id=job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=2,
        )

    def job_ids(self) -> list:
        return [job.id for job in self._scheduler.get_jobs()]


def _guarded(job_id: str, func: Callable[[], object]) -> Callable[[], None]:
    """A failed run is logged; the next tick recomputes from current data."""

    def run() -> None:
        try:
            func()
        except Exception:
            log.exception("Scheduled job %s failed", job_id)

    run.__name__ = f"job_{job_id}"
    return run
