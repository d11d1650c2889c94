"""Climbing API routes -- routes, per-climber overlay, logs, climber registration."""
import re

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from cragrank.domain.enums import LockStatus, LogStyle
from cragrank.domain.invariant import MalformedRecordError, RecordNotFoundError
from cragrank.infrastructure.store.record_store import TransactionConflict

router = APIRouter(prefix="/api", tags=["climbing"])

_STYLE_PATTERN = "^(" + "|".join(LogStyle.values()) + ")$"
_LOCK_PATTERN = "^(" + "|".join(s.value for s in LockStatus) + ")$"
_ID_PATTERN = "^[A-Za-z0-9_.-]{1,128}$"


class LogRequest(BaseModel):
    style: str = Field(..., pattern=_STYLE_PATTERN)
    lock_status: str | None = Field(default=None, pattern=_LOCK_PATTERN)


class ClimberRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


_log_service = None


def init_climbing_routes(log_service):
    global _log_service
    _log_service = log_service


def _check_id(value: str, label: str) -> None:
    if not re.match(_ID_PATTERN, value):
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value!r}")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/routes")
def api_list_routes():
    try:
        return {"routes": _log_service.list_routes()}
    except MalformedRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/climbers/{climber_id}/routes")
def api_climber_routes(climber_id: str):
    """Every route with this climber's style and lock status."""
    _check_id(climber_id, "climber id")
    try:
        return {"routes": _log_service.climber_routes(climber_id)}
    except MalformedRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

@router.put("/routes/{route_id}/logs/{climber_id}")
def api_record_log(route_id: str, climber_id: str, req: LogRequest):
    _check_id(route_id, "route id")
    _check_id(climber_id, "climber id")
    try:
        return _log_service.record_log(route_id, climber_id, req.style, req.lock_status)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/routes/{route_id}/logs/{climber_id}")
def api_delete_log(route_id: str, climber_id: str):
    _check_id(route_id, "route id")
    _check_id(climber_id, "climber id")
    try:
        return _log_service.delete_log(route_id, climber_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ---------------------------------------------------------------------------
# Climbers
# ---------------------------------------------------------------------------

@router.put("/climbers/{climber_id}")
def api_register_climber(climber_id: str, req: ClimberRequest):
    _check_id(climber_id, "climber id")
    try:
        return _log_service.register_climber(climber_id, req.name)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransactionConflict as e:
        raise HTTPException(status_code=503, detail=str(e))
