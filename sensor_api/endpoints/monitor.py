"""Estado del monitor embebido (solo lectura)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ..auth import require_bearer_token
from ..schemas import MonitorStatusOut, SensorReadingOut

router = APIRouter(tags=["monitor"], dependencies=[Depends(require_bearer_token)])


@router.get("/monitor/status", response_model=MonitorStatusOut)
def get_monitor_status(request: Request):
    """Último snapshot del clasificador autoritativo; 404 si no está embebido."""
    loop = getattr(request.app.state, "monitor", None)
    if loop is None:
        raise HTTPException(status_code=404, detail="Embedded monitor not enabled")

    snap = loop.snapshot()
    return MonitorStatusOut(
        system_state=snap.system_state,
        connectivity=snap.connectivity,
        latest=SensorReadingOut.from_domain(snap.latest) if snap.latest else None,
        window=snap.window,
        last_data_received_at=snap.last_data_received_at,
        consecutive_failures=snap.consecutive_failures,
        error_since=snap.error_since,
        last_error=snap.last_error,
    )
