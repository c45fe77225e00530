"""Métricas Prometheus de la API de sensores."""

from __future__ import annotations

from prometheus_client import Counter

READINGS_INGESTED = Counter(
    "sensor_api_readings_ingested_total",
    "Sensor readings received by the ingestion endpoint",
    ["status"],  # stored, rejected, failed
)

EVENTS_LOGGED = Counter(
    "sensor_api_events_logged_total",
    "Transition events appended to the event log",
    ["state"],
)
