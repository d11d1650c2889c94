"""Ranking API routes -- fresh ranking, published leaderboard, manual recompute."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from cragrank.api.dependencies import require_admin_key
from cragrank.application.ranking_engine import RankingCommitError
from cragrank.domain.invariant import MalformedRecordError, RecordNotFoundError
from cragrank.infrastructure.store.record_store import TransactionConflict

log = logging.getLogger("cragrank.api")

router = APIRouter(prefix="/api", tags=["ranking"])

_engine = None
_query_service = None


def init_ranking_routes(ranking_engine, query_service):
    global _engine, _query_service
    _engine = ranking_engine
    _query_service = query_service


@router.get("/ranking")
def api_current_ranking():
    """Recompute the ranking now without persisting it."""
    try:
        return {"ranking": _query_service.current_ranking()}
    except (MalformedRecordError, RecordNotFoundError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (SQLAlchemyError, OSError) as e:
        log.error("On-demand ranking failed: %s: %s", type(e).__name__, e)
        raise HTTPException(status_code=503, detail="Record store unavailable.")


@router.get("/leaderboard")
def api_leaderboard(limit: int | None = Query(default=None, ge=1, le=1000)):
    """Ranking as of the last committed run, ordered by position."""
    return {"ranking": _query_service.published_ranking(limit)}


@router.post("/ranking/recompute", dependencies=[Depends(require_admin_key)])
def api_recompute_ranking():
    """Run the scheduled recomputation immediately and commit it."""
    try:
        return _engine.run().to_dict()
    except (RankingCommitError, TransactionConflict) as e:
        raise HTTPException(status_code=503, detail=f"Ranking not committed: {e}")
    except (SQLAlchemyError, OSError) as e:
        log.error("Recompute failed before commit: %s: %s", type(e).__name__, e)
        raise HTTPException(status_code=503, detail="Record store unavailable.")
