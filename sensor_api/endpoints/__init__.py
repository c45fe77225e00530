"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API de sensores organizados por función.
"""

from .health import router as health_router
from .sensor_data import router as sensor_data_router
from .event_logs import router as event_logs_router
from .monitor import router as monitor_router

__all__ = [
    "health_router",
    "sensor_data_router",
    "event_logs_router",
    "monitor_router",
]
