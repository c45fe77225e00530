"""Endpoints de lecturas: ingesta del dispositivo, última lectura e historial."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from common.config import get_settings
from ..auth import require_bearer_token
from ..errors import ReadingValidationError, StorageError
from ..ingest import parse_reading
from ..metrics import READINGS_INGESTED
from ..schemas import ReadingHistoryOut, SensorDataAck, SensorReadingOut
from ..storage import ReadingStore, get_reading_store
from ._errors import storage_http_error

router = APIRouter(tags=["sensor-data"], dependencies=[Depends(require_bearer_token)])
logger = logging.getLogger(__name__)


@router.post("/sensor-data", response_model=SensorDataAck)
def ingest_sensor_data(
    payload: Dict[str, Any] = Body(...),
    store: ReadingStore = Depends(get_reading_store),
):
    """Valida y persiste una lectura del dispositivo.

    Reintentos del dispositivo son seguros: timestamps duplicados se
    aceptan y coexisten en el historial.
    """
    try:
        reading = parse_reading(payload)
    except ReadingValidationError as e:
        READINGS_INGESTED.labels(status="rejected").inc()
        raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        store.put(reading)
    except StorageError as e:
        READINGS_INGESTED.labels(status="failed").inc()
        logger.exception("Storage error in /sensor-data err=%s", type(e).__name__)
        raise storage_http_error(e)

    READINGS_INGESTED.labels(status="stored").inc()
    logger.info(
        "[INGEST] Stored sensor reading pH=%s orp=%s conductivity=%s ts=%s",
        reading.ph,
        reading.orp,
        reading.conductivity,
        reading.timestamp,
    )
    return SensorDataAck(data=SensorReadingOut.from_domain(reading))


@router.get("/sensor-data/latest", response_model=SensorReadingOut)
def get_latest_sensor_data(store: ReadingStore = Depends(get_reading_store)):
    """Última lectura; 404 antes de la primera ingesta (estado normal en arranque)."""
    try:
        latest = store.get_latest()
    except StorageError as e:
        logger.exception("Storage error in /sensor-data/latest err=%s", type(e).__name__)
        raise storage_http_error(e)

    if latest is None:
        raise HTTPException(status_code=404, detail="No sensor data available")
    return SensorReadingOut.from_domain(latest)


@router.get("/sensor-data/history", response_model=ReadingHistoryOut)
def get_sensor_data_history(
    limit: Optional[int] = Query(default=None, ge=0),
    store: ReadingStore = Depends(get_reading_store),
):
    if limit is None:
        limit = get_settings().history_default_limit

    try:
        readings = store.get_history(limit)
    except StorageError as e:
        logger.exception("Storage error in /sensor-data/history err=%s", type(e).__name__)
        raise storage_http_error(e)

    return ReadingHistoryOut(
        count=len(readings),
        data=[SensorReadingOut.from_domain(r) for r in readings],
    )
