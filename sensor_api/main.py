"""Chemical Sensor API.

Endpoints:
- /health, /ready
- /sensor-data (POST), /sensor-data/latest, /sensor-data/history
- /log-event (POST), /event-logs
- /monitor/status (solo con MONITOR_EMBEDDED=true)
- /metrics (Prometheus)

Con MONITOR_EMBEDDED=true la API ejecuta el único SyncLoop autoritativo
en proceso; las UIs leen su salida en /monitor/status en vez de
clasificar (y registrar transiciones) cada una por su cuenta.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from common.config import get_settings
from monitor_service import ClassifierThresholds, LocalSensorGateway, SyncLoop, SyncLoopConfig

from .endpoints import event_logs_router, health_router, monitor_router, sensor_data_router
from .storage import get_event_log, get_reading_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.monitor = None

    if settings.monitor_embedded:
        gateway = LocalSensorGateway(get_reading_store(), get_event_log())
        loop = SyncLoop(
            gateway,
            thresholds=ClassifierThresholds.from_settings(settings),
            config=SyncLoopConfig.from_settings(settings),
        )
        await loop.start()
        app.state.monitor = loop
        logger.info("[API] Embedded monitor enabled")

    try:
        yield
    finally:
        if app.state.monitor is not None:
            await app.state.monitor.stop()
            app.state.monitor = None


def create_app() -> FastAPI:
    app = FastAPI(title="Chemical Sensor API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    app.include_router(health_router)
    app.include_router(sensor_data_router)
    app.include_router(event_logs_router)
    app.include_router(monitor_router)
    app.mount("/metrics", make_asgi_app())
    return app


app = create_app()
