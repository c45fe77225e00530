"""Gateways del monitor: origen de lecturas y destino de eventos.

Desacopla el SyncLoop del transporte:
- HttpSensorGateway: cliente httpx contra la API HTTP (UI / proceso remoto)
- LocalSensorGateway: acceso directo a los stores (monitor embebido en la API)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from common.domain import EventLogEntry, SensorReading, SensorSnapshot, SystemState
from sensor_api.errors import StorageError
from sensor_api.storage import EventLog, ReadingStore

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Fallo de red, respuesta no-2xx distinta de 404 o respuesta malformada."""


class SensorGateway(ABC):
    @abstractmethod
    async def fetch_latest(self) -> Optional[SensorReading]:
        """Última lectura; None si el servidor responde "sin datos todavía".

        Raises:
            GatewayError: si el servidor no es alcanzable o responde con error
        """

    @abstractmethod
    async def log_event(
        self,
        *,
        type: str,
        message: str,
        system_state: SystemState,
        sensor_data: Optional[SensorSnapshot],
    ) -> EventLogEntry:
        """Añade una entrada al log de eventos."""

    async def aclose(self) -> None:
        return None


class HttpSensorGateway(SensorGateway):
    """Cliente httpx de la API de sensores."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def fetch_latest(self) -> Optional[SensorReading]:
        try:
            resp = await self._client.get("/sensor-data/latest")
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {type(e).__name__}: {e}") from e

        if resp.status_code == 404:
            # Sin datos todavía, pero el servidor responde.
            return None
        if not resp.is_success:
            raise GatewayError(f"HTTP {resp.status_code} {resp.reason_phrase}")

        try:
            return SensorReading.from_dict(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise GatewayError(f"Malformed sensor reading: {e}") from e

    async def log_event(
        self,
        *,
        type: str,
        message: str,
        system_state: SystemState,
        sensor_data: Optional[SensorSnapshot],
    ) -> EventLogEntry:
        body = {
            "type": type,
            "message": message,
            "systemState": system_state.value,
            "sensorData": sensor_data.to_dict() if sensor_data else None,
        }
        try:
            resp = await self._client.post("/log-event", json=body)
            resp.raise_for_status()
            return EventLogEntry.from_dict(resp.json()["data"])
        except httpx.HTTPError as e:
            raise GatewayError(f"Failed to log event: {e.__class__.__name__}: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise GatewayError(f"Malformed event log response: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()


class LocalSensorGateway(SensorGateway):
    """Acceso en proceso; las llamadas bloqueantes van a un thread."""

    def __init__(self, reading_store: ReadingStore, event_log: EventLog) -> None:
        self._store = reading_store
        self._event_log = event_log

    async def fetch_latest(self) -> Optional[SensorReading]:
        try:
            return await asyncio.to_thread(self._store.get_latest)
        except StorageError as e:
            raise GatewayError(f"Storage unreachable: {e}") from e

    async def log_event(
        self,
        *,
        type: str,
        message: str,
        system_state: SystemState,
        sensor_data: Optional[SensorSnapshot],
    ) -> EventLogEntry:
        try:
            return await asyncio.to_thread(
                self._event_log.append,
                type=type,
                message=message,
                system_state=system_state,
                sensor_data=sensor_data,
            )
        except StorageError as e:
            raise GatewayError(f"Failed to log event: {e}") from e
