"""Abstract key-value storage with prefix scan.

The reading store and the event log only need four operations, so any
backend (SQL table, Redis, in-memory dict) can implement this interface.

Implementations:
- SqlKeyValueStore: one `kv_store` table through SQLAlchemy
- RedisKeyValueStore: plain string keys in Redis
- InMemoryKeyValueStore: dict + lock, for testing
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

import orjson
import redis
from sqlalchemy import Column, MetaData, String, Table, Text, delete, insert, select, text
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError

logger = logging.getLogger(__name__)

KeyValue = Tuple[str, Dict[str, Any]]


def _dumps(value: Mapping[str, Any]) -> str:
    try:
        return orjson.dumps(value).decode("utf-8")
    except orjson.JSONEncodeError as e:
        raise StorageError(f"Cannot encode value: {e}") from e


def _loads(raw: str | bytes) -> Dict[str, Any]:
    return orjson.loads(raw)


class KeyValueStore(ABC):
    """Abstract key-value capability used by the reading store and event log."""

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Returns the value stored under `key`, None if absent."""

    @abstractmethod
    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        """Writes every item or none of them.

        Raises:
            StorageError: if the backend is unreachable or the write fails
        """

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> List[KeyValue]:
        """Returns all (key, value) pairs whose key starts with `prefix`, ordered by key."""

    @abstractmethod
    def ping(self) -> bool:
        """True if the backend is reachable."""

    def set(self, key: str, value: Mapping[str, Any]) -> None:
        self.set_many({key: value})


class InMemoryKeyValueStore(KeyValueStore):
    """Implementación en memoria; no persiste entre procesos."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._data.get(key)
            return dict(value) if value is not None else None

    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        with self._lock:
            for key, value in items.items():
                self._data[key] = dict(value)

    def get_by_prefix(self, prefix: str) -> List[KeyValue]:
        with self._lock:
            return [
                (key, dict(value))
                for key, value in sorted(self._data.items())
                if key.startswith(prefix)
            ]

    def ping(self) -> bool:
        return True


_metadata = MetaData()

kv_table = Table(
    "kv_store",
    _metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)


def upsert_statement(dialect_name: str):
    """INSERT que sobrescribe la clave existente; None si el dialecto no tiene upsert.

    Dos escritores concurrentes de la misma clave (el puntero latest)
    terminan ambos; gana el último commit.
    """
    if dialect_name == "postgresql":
        stmt = postgresql.insert(kv_table)
        return stmt.on_conflict_do_update(index_elements=[kv_table.c.key], set_={"value": stmt.excluded.value})
    if dialect_name == "sqlite":
        stmt = sqlite.insert(kv_table)
        return stmt.on_conflict_do_update(index_elements=[kv_table.c.key], set_={"value": stmt.excluded.value})
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(kv_table)
        return stmt.on_duplicate_key_update(value=stmt.inserted.value)
    return None


class SqlKeyValueStore(KeyValueStore):
    """Key-value table on any SQLAlchemy engine (SQLite, PostgreSQL, ...)."""

    def __init__(self, engine: Engine, create_schema: bool = True) -> None:
        self._engine = engine
        if create_schema:
            try:
                _metadata.create_all(engine)
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot create kv_store table: {type(e).__name__}") from e

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(kv_table.c.value).where(kv_table.c.key == key)
                ).fetchone()
        except SQLAlchemyError as e:
            logger.exception("[STORE] SQL get failed key=%s", key)
            raise StorageError(f"Read failed: {type(e).__name__}") from e

        if row is None:
            return None
        return _loads(row.value)

    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        if not items:
            return
        rows = [{"key": key, "value": _dumps(value)} for key, value in items.items()]
        upsert = upsert_statement(self._engine.dialect.name)
        try:
            # Single transaction: either every key lands or none does.
            with self._engine.begin() as conn:
                if upsert is not None:
                    conn.execute(upsert, rows)
                else:
                    conn.execute(delete(kv_table).where(kv_table.c.key.in_(list(items.keys()))))
                    conn.execute(insert(kv_table), rows)
        except SQLAlchemyError as e:
            logger.exception("[STORE] SQL write failed keys=%d", len(items))
            raise StorageError(f"Write failed: {type(e).__name__}") from e

    def get_by_prefix(self, prefix: str) -> List[KeyValue]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    select(kv_table.c.key, kv_table.c.value)
                    .where(kv_table.c.key.startswith(prefix, autoescape=True))
                    .order_by(kv_table.c.key)
                ).fetchall()
        except SQLAlchemyError as e:
            logger.exception("[STORE] SQL prefix scan failed prefix=%s", prefix)
            raise StorageError(f"Scan failed: {type(e).__name__}") from e

        return [(row.key, _loads(row.value)) for row in rows]

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False


def _escape_glob(prefix: str) -> str:
    for ch in ("\\", "*", "?", "[", "]"):
        prefix = prefix.replace(ch, "\\" + ch)
    return prefix


class RedisKeyValueStore(KeyValueStore):
    """Redis backend: SET/GET por clave, SCAN para el prefijo."""

    def __init__(self, client: redis.Redis, scan_count: int = 500) -> None:
        self._client = client
        self._scan_count = scan_count

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=False,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
        logger.info("[REDIS] Store configured: %s", url.split("@")[-1])
        return cls(client)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("[REDIS] GET failed key=%s: %s", key, e)
            raise StorageError(f"Read failed: {type(e).__name__}") from e
        return _loads(raw) if raw is not None else None

    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        if not items:
            return
        try:
            pipe = self._client.pipeline(transaction=True)
            for key, value in items.items():
                pipe.set(key, _dumps(value))
            pipe.execute()
        except redis.RedisError as e:
            logger.warning("[REDIS] MULTI/EXEC failed keys=%d: %s", len(items), e)
            raise StorageError(f"Write failed: {type(e).__name__}") from e

    def get_by_prefix(self, prefix: str) -> List[KeyValue]:
        try:
            keys = sorted(
                k.decode("utf-8") if isinstance(k, bytes) else k
                for k in self._client.scan_iter(match=_escape_glob(prefix) + "*", count=self._scan_count)
            )
            if not keys:
                return []
            values = self._client.mget(keys)
        except redis.RedisError as e:
            logger.warning("[REDIS] Prefix scan failed prefix=%s: %s", prefix, e)
            raise StorageError(f"Scan failed: {type(e).__name__}") from e

        # A key can vanish between SCAN and MGET.
        return [(k, _loads(v)) for k, v in zip(keys, values) if v is not None]

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
