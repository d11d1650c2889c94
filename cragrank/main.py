"""Entry point. Wires the record store into services, routes and the scheduler.

Persistence strategy:
  - If DATABASE_URL is set  -> SQL record store (PostgreSQL in production).
  - Otherwise               -> JSON file store (development only).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from cragrank.api.dependencies import configure_admin_key, require_admin_key
from cragrank.api.routes.climbing_routes import init_climbing_routes, router as climbing_router
from cragrank.api.routes.ranking_routes import init_ranking_routes, router as ranking_router
from cragrank.application.completion_counter import recount_all_routes
from cragrank.application.log_service import LogService
from cragrank.application.ranking_engine import RankingEngine
from cragrank.application.ranking_query import RankingQueryService
from cragrank.config import Config
from cragrank.infrastructure import audit
from cragrank.infrastructure.database.seed import seed_routes
from cragrank.infrastructure.scheduler import RankingScheduler

log = logging.getLogger("cragrank.startup")


class Services:
    """Everything one app instance needs, built from a Config."""

    def __init__(self, config: Config, store=None):
        self.config = config
        self.store = store or build_store(config)
        self.ranking_engine = RankingEngine(
            self.store,
            max_workers=config.ranking_max_workers,
            max_attempts=config.transaction_max_attempts,
            audit=audit.log_event,
        )
        self.ranking_query = RankingQueryService(self.store, max_workers=config.ranking_max_workers)
        self.log_service = LogService(self.store, max_attempts=config.transaction_max_attempts)
        self.scheduler = RankingScheduler()

    def start_scheduler(self) -> None:
        cfg = self.config
        self.scheduler.schedule_every(
            "ranking-recompute", self.ranking_engine.run, minutes=cfg.ranking_interval_minutes,
        )
        if cfg.recount_interval_minutes > 0:
            self.scheduler.schedule_every(
                "completion-recount",
                lambda: recount_all_routes(self.store, cfg.transaction_max_attempts),
                minutes=cfg.recount_interval_minutes,
            )
        self.scheduler.start()
        log.info("Scheduler started: %s", ", ".join(self.scheduler.job_ids()))


def build_store(config: Config):
    if config.database_url:
        from cragrank.infrastructure.database.connection import (
            create_tables, dynamic_session_factory, init_engine,
        )
        from cragrank.infrastructure.store.sql_record_store import SqlRecordStore

        init_engine(config.database_url)
        create_tables()
        return SqlRecordStore(dynamic_session_factory, max_attempts=config.transaction_max_attempts)

    from cragrank.infrastructure.store.json_record_store import JsonRecordStore

    log.info("DATABASE_URL not set -- using JSON store at %s", config.store_path)
    return JsonRecordStore(config.store_path, max_attempts=config.transaction_max_attempts)


def create_app(config: Config | None = None, store=None, seed: bool = True) -> FastAPI:
    config = config or Config()
    services = Services(config, store=store)

    if seed:
        # Idempotent; a failure here must not keep the API down.
        try:
            seed_routes(services.store, config.routes_seed_path)
        except Exception as exc:
            log.error("Route seed skipped: %s: %s", type(exc).__name__, exc)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.scheduler_enabled:
            services.start_scheduler()
        try:
            yield
        finally:
            services.scheduler.shutdown()
            services.store.close()

    app = FastAPI(
        title="cragrank",
        description="Rarity-weighted climbing leaderboard.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    configure_admin_key(config.admin_api_key)
    init_ranking_routes(services.ranking_engine, services.ranking_query)
    init_climbing_routes(services.log_service)
    app.include_router(ranking_router)
    app.include_router(climbing_router)

    @app.get("/health")
    def health():
        result = {
            "status": "online",
            "system": "cragrank v1.0.0",
            "persistence": services.store.backend,
            "scheduler": "running" if services.scheduler.running else "stopped",
        }
        if services.store.backend == "sql":
            from cragrank.infrastructure.database.connection import check_health
            result["database"] = "connected" if check_health() else "disconnected"
        return result

    @app.get("/api/audit", tags=["ranking"], dependencies=[Depends(require_admin_key)])
    def recent_runs(limit: int = Query(default=20, ge=1, le=500)):
        """Most recent committed/discarded ranking runs."""
        return {"events": audit.read_events(limit)}

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("cragrank.main:create_app", factory=True, host="0.0.0.0", port=8000)
