"""Errores de dominio de la API de sensores."""

from __future__ import annotations


class SensorApiError(Exception):
    """Base de los errores que la API devuelve al llamador."""

    status_code = 500
    kind = "internal"


class ReadingValidationError(SensorApiError):
    """Payload de lectura incompleto o no numérico. El cliente debe reenviar."""

    status_code = 400
    kind = "validation"


class StorageError(SensorApiError):
    """Persistencia no disponible o escritura fallida. Sin reintento en esta capa."""

    status_code = 500
    kind = "storage"
