"""Endpoints del log de eventos de transición."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from common.config import get_settings
from common.domain import SystemState
from ..auth import require_bearer_token
from ..errors import StorageError
from ..metrics import EVENTS_LOGGED
from ..queries import EventLogFilter
from ..schemas import EventLogAck, EventLogEntryOut, EventLogIn, EventLogListOut
from ..storage import EventLog, get_event_log
from ._errors import storage_http_error

router = APIRouter(tags=["event-logs"], dependencies=[Depends(require_bearer_token)])
logger = logging.getLogger(__name__)

_ALL = "all"


@router.post("/log-event", response_model=EventLogAck)
def log_event(payload: EventLogIn, event_log: EventLog = Depends(get_event_log)):
    """Registra una transición de estado; el timestamp lo asigna el servidor."""
    try:
        entry = event_log.append(
            type=payload.type,
            message=payload.message,
            system_state=payload.system_state,
            sensor_data=payload.sensor_data.to_domain() if payload.sensor_data else None,
        )
    except StorageError as e:
        logger.exception("Storage error in /log-event err=%s", type(e).__name__)
        raise storage_http_error(e)

    EVENTS_LOGGED.labels(state=entry.system_state.value).inc()
    return EventLogAck(data=EventLogEntryOut.from_domain(entry))


def _parse_state(state: Optional[str]) -> Optional[SystemState]:
    if state is None or state.strip().lower() == _ALL:
        return None
    try:
        return SystemState(state)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown state: {state}")


@router.get("/event-logs", response_model=EventLogListOut)
def get_event_logs(
    limit: Optional[int] = Query(default=None, ge=0),
    state: Optional[str] = Query(default=None),
    event_type: Optional[str] = Query(default=None, alias="type"),
    search: Optional[str] = Query(default=None),
    event_log: EventLog = Depends(get_event_log),
):
    """Eventos más recientes primero, con filtros opcionales.

    `state` y `type` aceptan "all" como "sin filtro" (igual que la UI).
    """
    if limit is None:
        limit = get_settings().event_log_default_limit

    criteria = EventLogFilter(
        state=_parse_state(state),
        type=None if event_type is None or event_type == _ALL else event_type,
        search=search,
    )

    try:
        entries = event_log.query(limit, criteria)
    except StorageError as e:
        logger.exception("Storage error in /event-logs err=%s", type(e).__name__)
        raise storage_http_error(e)

    return EventLogListOut(
        count=len(entries),
        data=[EventLogEntryOut.from_domain(e) for e in entries],
    )
