"""Almacén de lecturas: historial append-only + puntero a la última lectura."""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from common.domain import SensorReading

from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

READING_PREFIX = "sensor_reading_"
LATEST_KEY = "latest_sensor_reading"


def reading_key(reading: SensorReading) -> str:
    # Sufijo aleatorio: dos lecturas con el mismo timestamp coexisten.
    return f"{READING_PREFIX}{reading.timestamp}_{uuid.uuid4().hex[:12]}"


class ReadingStore:
    """Único escritor del historial de lecturas y del puntero `latest`."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def put(self, reading: SensorReading) -> SensorReading:
        """Guarda la lectura y sobrescribe el puntero latest (last-writer-wins).

        Ambas escrituras van en un único `set_many`; si falla no queda
        ninguna de las dos.

        Raises:
            StorageError: si la persistencia no está disponible
        """
        data = reading.to_dict()
        self._kv.set_many({reading_key(reading): data, LATEST_KEY: data})
        logger.debug("[STORE] Stored reading ts=%s pH=%s", reading.timestamp, reading.ph)
        return reading

    def get_latest(self) -> Optional[SensorReading]:
        data = self._kv.get(LATEST_KEY)
        if data is None:
            return None
        return SensorReading.from_dict(data)

    def get_history(self, limit: int) -> List[SensorReading]:
        """Lecturas más recientes primero, truncadas a `limit`.

        Empates de timestamp conservan el orden de clave (sort estable),
        así que una misma consulta es determinista.
        """
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if limit == 0:
            return []

        readings = [SensorReading.from_dict(value) for _, value in self._kv.get_by_prefix(READING_PREFIX)]
        readings.sort(key=lambda r: r.timestamp, reverse=True)
        return readings[:limit]

    def ping(self) -> bool:
        return self._kv.ping()
