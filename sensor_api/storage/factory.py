"""Factory para el backend key-value.

Centraliza la selección de backend (STORAGE_BACKEND) y expone las
dependencias FastAPI del reading store y del event log.
"""

from __future__ import annotations

import logging
from typing import Optional

from common.config import Settings, get_settings
from common.db import get_engine

from .event_log import EventLog
from .kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore, SqlKeyValueStore
from .reading_store import ReadingStore

logger = logging.getLogger(__name__)

_kv_instance: Optional[KeyValueStore] = None


def create_kv_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Crea una nueva instancia del backend configurado."""
    settings = settings or get_settings()
    backend = settings.storage_backend

    if backend == "memory":
        logger.info("[STORE_FACTORY] Using InMemory store (no persistence)")
        return InMemoryKeyValueStore()
    if backend == "redis":
        logger.info("[STORE_FACTORY] Using Redis store")
        return RedisKeyValueStore.from_url(settings.redis_url)
    if backend == "sql":
        logger.info("[STORE_FACTORY] Using SQL store")
        return SqlKeyValueStore(get_engine(settings))

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


def get_kv_store() -> KeyValueStore:
    """Singleton; se crea en la primera llamada."""
    global _kv_instance
    if _kv_instance is None:
        _kv_instance = create_kv_store()
    return _kv_instance


def set_kv_store(store: Optional[KeyValueStore]) -> None:
    """Reemplaza el singleton (útil para testing)."""
    global _kv_instance
    _kv_instance = store


def get_reading_store() -> ReadingStore:
    return ReadingStore(get_kv_store())


def get_event_log() -> EventLog:
    return EventLog(get_kv_store())
