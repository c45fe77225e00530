"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from ..storage import get_kv_store

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: ok mientras el proceso responda."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness probe: verifica que el backend de almacenamiento responde."""
    try:
        reachable = get_kv_store().ping()
    except Exception:
        logger.exception("Storage readiness check failed")
        reachable = False

    if not reachable:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}
