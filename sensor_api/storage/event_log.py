"""Log de eventos append-only: un registro por transición de SystemState."""

from __future__ import annotations

import logging
import time
import uuid
from typing import List, Optional

from common.domain import EventLogEntry, SensorSnapshot, SystemState

from ..queries.event_filter import EventLogFilter, apply_filter
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

EVENT_PREFIX = "event_log_"


def _now_ms() -> int:
    return int(time.time() * 1000)


def event_key(entry: EventLogEntry) -> str:
    return f"{EVENT_PREFIX}{entry.timestamp}_{uuid.uuid4().hex[:12]}"


class EventLog:
    """Sin update ni delete; solo `append` y `query`."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def append(
        self,
        *,
        type: str,
        message: str,
        system_state: SystemState,
        sensor_data: Optional[SensorSnapshot],
        timestamp: Optional[int] = None,
    ) -> EventLogEntry:
        """Crea y persiste la entrada; el timestamp por defecto es el de recepción.

        Raises:
            StorageError: si la persistencia no está disponible
        """
        entry = EventLogEntry(
            type=type,
            message=message,
            system_state=system_state,
            sensor_data=sensor_data,
            timestamp=timestamp if timestamp is not None else _now_ms(),
        )
        self._kv.set(event_key(entry), entry.to_dict())
        logger.info(
            "[EVENT_LOG] Logged type=%s state=%s ts=%s",
            entry.type,
            entry.system_state.value,
            entry.timestamp,
        )
        return entry

    def query(
        self,
        limit: int,
        criteria: Optional[EventLogFilter] = None,
    ) -> List[EventLogEntry]:
        """Entradas filtradas, más recientes primero, truncadas a `limit`."""
        if limit < 0:
            raise ValueError("limit must be >= 0")

        entries = [EventLogEntry.from_dict(value) for _, value in self._kv.get_by_prefix(EVENT_PREFIX)]
        if criteria is not None:
            entries = apply_filter(entries, criteria)
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]
