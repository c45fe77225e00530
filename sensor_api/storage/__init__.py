"""Persistencia: backend key-value abstracto, reading store y event log."""

from .event_log import EventLog
from .factory import create_kv_store, get_event_log, get_kv_store, get_reading_store, set_kv_store
from .kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore, SqlKeyValueStore
from .reading_store import LATEST_KEY, READING_PREFIX, ReadingStore

__all__ = [
    "EventLog",
    "ReadingStore",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
    "RedisKeyValueStore",
    "create_kv_store",
    "get_kv_store",
    "set_kv_store",
    "get_reading_store",
    "get_event_log",
    "LATEST_KEY",
    "READING_PREFIX",
]
