"""Autenticación de los endpoints de la API de sensores."""

from .bearer import require_bearer_token

__all__ = ["require_bearer_token"]
