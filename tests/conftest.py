"""Fixtures compartidos."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient

from common.db import build_engine
from common.domain import EventLogEntry, SensorReading, SensorSnapshot, SystemState
from monitor_service.gateway import GatewayError, SensorGateway
from sensor_api.errors import StorageError
from sensor_api.main import create_app
from sensor_api.storage import (
    EventLog,
    InMemoryKeyValueStore,
    KeyValueStore,
    ReadingStore,
    SqlKeyValueStore,
    set_kv_store,
)


class BrokenKeyValueStore(KeyValueStore):
    """Backend que simula persistencia inalcanzable."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise StorageError("backend unreachable")

    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        raise StorageError("backend unreachable")

    def get_by_prefix(self, prefix: str) -> List:
        raise StorageError("backend unreachable")

    def ping(self) -> bool:
        return False


class FakeGateway(SensorGateway):
    """Gateway guionizado: cada fetch consume la siguiente respuesta.

    Una respuesta puede ser SensorReading, None (404) o una excepción.
    """

    def __init__(self, responses=None, fail_log: bool = False) -> None:
        self.responses = list(responses or [])
        self.fail_log = fail_log
        self.logged: List[EventLogEntry] = []
        self.fetches = 0

    async def fetch_latest(self) -> Optional[SensorReading]:
        self.fetches += 1
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def log_event(
        self,
        *,
        type: str,
        message: str,
        system_state: SystemState,
        sensor_data: Optional[SensorSnapshot],
    ) -> EventLogEntry:
        if self.fail_log:
            raise GatewayError("log-event unreachable")
        entry = EventLogEntry(
            type=type,
            message=message,
            system_state=system_state,
            sensor_data=sensor_data,
            timestamp=1_000 + len(self.logged),
        )
        self.logged.append(entry)
        return entry


def make_reading(ph: float, timestamp: int = 1_700_000_000_000, orp: float = 650.0, conductivity: float = 500.0) -> SensorReading:
    return SensorReading(ph=ph, orp=orp, conductivity=conductivity, timestamp=timestamp)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Sin .env ni token: modo desarrollo, backend en memoria."""
    monkeypatch.setenv("CHEM_ENV_FILE", "")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.delenv("SENSOR_API_TOKEN", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("MONITOR_EMBEDDED", raising=False)
    monkeypatch.delenv("SENSOR_API_DEBUG_ERRORS", raising=False)
    yield
    set_kv_store(None)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    store = InMemoryKeyValueStore()
    set_kv_store(store)
    return store


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_kv_store(request, sql_engine) -> KeyValueStore:
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return SqlKeyValueStore(sql_engine)


@pytest.fixture
def reading_store(kv_store) -> ReadingStore:
    return ReadingStore(kv_store)


@pytest.fixture
def event_log(kv_store) -> EventLog:
    return EventLog(kv_store)


@pytest.fixture
def client(kv_store) -> TestClient:
    with TestClient(create_app()) as c:
        yield c
