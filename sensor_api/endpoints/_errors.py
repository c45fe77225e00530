"""Conversión de errores de dominio a HTTPException."""

from __future__ import annotations

from fastapi import HTTPException

from common.config import get_settings

from ..errors import StorageError


def storage_http_error(e: StorageError) -> HTTPException:
    # No exponer detalles del backend salvo en modo debug.
    detail = f"Storage error: {type(e).__name__}"
    if get_settings().debug_errors:
        detail = f"{detail}: {e}"
    return HTTPException(status_code=e.status_code, detail=detail)
