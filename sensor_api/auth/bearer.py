"""Autenticación por bearer token.

SECURITY: En producción, SENSOR_API_TOKEN debe estar configurado.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException

from common.config import get_settings

logger = logging.getLogger(__name__)


def _extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_bearer_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    """Rechaza la petición antes de llegar al handler si el token no es válido.

    En modo desarrollo, sin SENSOR_API_TOKEN configurado, permite acceso
    con warning.
    """
    settings = get_settings()
    expected = settings.api_token

    if not expected:
        if settings.is_production:
            logger.error("CRITICAL: SENSOR_API_TOKEN not configured in production!")
            raise HTTPException(
                status_code=500,
                detail="Server misconfiguration: API token not set",
            )
        logger.warning(
            "[SECURITY WARNING] SENSOR_API_TOKEN not set - "
            "allowing unauthenticated access (DEV ONLY)"
        )
        return

    token = _extract_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Bearer token required")

    if not hmac.compare_digest(token, expected):
        logger.warning("Invalid bearer token attempt from request")
        raise HTTPException(status_code=401, detail="Invalid bearer token")
