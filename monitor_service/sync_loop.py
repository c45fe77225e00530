"""Loop de sincronización: poll -> ventana -> clasificador -> log de eventos.

Una única tarea asyncio periódica; cada ciclo espera a que termine (o falle)
el fetch anterior, así que nunca hay ciclos solapados.

Uso:
    loop = SyncLoop(HttpSensorGateway(url, token))
    loop.add_observer(lambda snap: print(snap.system_state))
    await loop.start()
    ...
    await loop.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from common.config import Settings
from common.domain import ConnectivityState, SensorReading, SystemState

from .classifier import DEFAULT_THRESHOLDS, ClassifierThresholds, classify_window
from .events import transition_event
from .gateway import GatewayError, SensorGateway
from .metrics import (
    MONITOR_CONNECTIVITY,
    MONITOR_CONSECUTIVE_FAILURES,
    MONITOR_EVENT_LOG_FAILURES,
    MONITOR_FETCHES,
    MONITOR_SYSTEM_STATE,
    MONITOR_TRANSITIONS,
)
from .sliding_window import DEFAULT_WINDOW_SIZE, SensorWindow

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class MonitorSnapshot:
    """Lo que reciben los observers tras cada ciclo."""

    system_state: SystemState
    connectivity: ConnectivityState
    window: Dict[str, List[float]]
    latest: Optional[SensorReading]
    last_data_received_at: Optional[int]
    consecutive_failures: int
    error_since: Optional[int]
    last_error: Optional[str]

    def error_duration_ms(self, now_ms: int) -> int:
        """Tiempo en estado ERROR; 0 si el enlace está sano."""
        if self.error_since is None:
            return 0
        return max(0, now_ms - self.error_since)

    def to_dict(self) -> dict:
        return {
            "systemState": self.system_state.value,
            "connectivity": self.connectivity.value,
            "latest": self.latest.to_dict() if self.latest else None,
            "window": self.window,
            "lastDataReceivedAt": self.last_data_received_at,
            "consecutiveFailures": self.consecutive_failures,
            "errorSince": self.error_since,
            "lastError": self.last_error,
        }


Observer = Callable[[MonitorSnapshot], None]


@dataclass(frozen=True)
class SyncLoopConfig:
    interval_seconds: float = 2.0
    window_size: int = DEFAULT_WINDOW_SIZE
    initial_state: SystemState = SystemState.SAFE

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncLoopConfig":
        return cls(
            interval_seconds=settings.sync_interval_seconds,
            window_size=settings.window_size,
        )


@dataclass
class SyncLoopStats:
    cycles: int = 0
    readings_received: int = 0
    fetch_failures: int = 0
    transitions: int = 0
    events_logged: int = 0
    event_log_failures: int = 0
    last_cycle_at: Optional[int] = None


class SyncLoop:
    """Dueño de la ventana, del SystemState vivo y del estado de conectividad.

    Es el único que decide cuándo hubo una transición y pide al log
    de eventos que la registre.
    """

    def __init__(
        self,
        gateway: SensorGateway,
        thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
        config: Optional[SyncLoopConfig] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._gateway = gateway
        self._thresholds = thresholds
        self._config = config or SyncLoopConfig()
        self._clock = clock

        self._window = SensorWindow(self._config.window_size)
        self._system_state = self._config.initial_state
        self._connectivity = ConnectivityState.CONNECTING
        self._last_data_received_at: Optional[int] = None
        self._consecutive_failures = 0
        self._error_since: Optional[int] = None
        self._last_error: Optional[str] = None

        self._observers: List[Observer] = []
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stats = SyncLoopStats()

        MONITOR_CONNECTIVITY.state(self._connectivity.value)
        MONITOR_SYSTEM_STATE.state(self._system_state.value)

        logger.info(
            "[SYNC] SyncLoop initialized: interval=%.1fs window=%d thresholds=%s",
            self._config.interval_seconds,
            self._config.window_size,
            self._thresholds,
        )

    @property
    def system_state(self) -> SystemState:
        return self._system_state

    @property
    def connectivity(self) -> ConnectivityState:
        return self._connectivity

    @property
    def window(self) -> SensorWindow:
        return self._window

    @property
    def running(self) -> bool:
        return self._running

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            system_state=self._system_state,
            connectivity=self._connectivity,
            window=self._window.to_dict(),
            latest=self._window.latest,
            last_data_received_at=self._last_data_received_at,
            consecutive_failures=self._consecutive_failures,
            error_since=self._error_since,
            last_error=self._last_error,
        )

    async def start(self) -> None:
        """Inicia el loop en background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("[SYNC] SyncLoop started")

    async def stop(self) -> None:
        """Cancela el timer pendiente y abandona el fetch en curso."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[SYNC] SyncLoop stopped")

    async def _run_loop(self) -> None:
        """Periodo fijo: el siguiente tick descuenta lo que tardó el ciclo."""
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception("[SYNC] Unexpected cycle error: %s", e)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self._config.interval_seconds - elapsed))

    async def run_cycle(self) -> MonitorSnapshot:
        """Un ciclo fetch-clasificar-registrar. Los fallos de red no se propagan."""
        self._stats.cycles += 1
        self._stats.last_cycle_at = self._clock()

        try:
            reading = await self._gateway.fetch_latest()
        except GatewayError as e:
            self._on_fetch_failure(e)
            return self._notify()

        self._on_fetch_success()

        if reading is None:
            MONITOR_FETCHES.labels(status="no_data").inc()
        else:
            MONITOR_FETCHES.labels(status="reading").inc()
            self._stats.readings_received += 1
            self._window.push(reading)
            self._last_data_received_at = self._clock()
            await self._classify()

        return self._notify()

    async def _classify(self) -> None:
        new_state = classify_window(self._window.ph, self._thresholds)
        if new_state is None:
            # Menos de dos puntos: todavía no determinable.
            return

        if new_state != self._system_state:
            previous = self._system_state
            self._stats.transitions += 1
            MONITOR_TRANSITIONS.labels(state=new_state.value).inc()
            logger.warning(
                "[SYNC] State transition %s -> %s pH=%s",
                previous.value,
                new_state.value,
                self._window.latest.ph if self._window.latest else None,
            )
            await self._log_transition(new_state)

        self._system_state = new_state
        MONITOR_SYSTEM_STATE.state(new_state.value)

    async def _log_transition(self, state: SystemState) -> None:
        event_type, message = transition_event(state)
        latest = self._window.latest
        try:
            await self._gateway.log_event(
                type=event_type,
                message=message,
                system_state=state,
                sensor_data=latest.snapshot if latest else None,
            )
            self._stats.events_logged += 1
        except GatewayError as e:
            # El cambio de estado se mantiene aunque no quede registrado.
            self._stats.event_log_failures += 1
            MONITOR_EVENT_LOG_FAILURES.inc()
            logger.warning("[SYNC] Failed to log event type=%s: %s", event_type, e)

    def _on_fetch_success(self) -> None:
        if self._connectivity != ConnectivityState.CONNECTED:
            logger.info(
                "[SYNC] Connectivity %s -> connected",
                self._connectivity.value,
            )
        self._connectivity = ConnectivityState.CONNECTED
        self._consecutive_failures = 0
        self._error_since = None
        self._last_error = None
        MONITOR_CONNECTIVITY.state(self._connectivity.value)
        MONITOR_CONSECUTIVE_FAILURES.set(0)

    def _on_fetch_failure(self, error: GatewayError) -> None:
        # Ventana y SystemState quedan intactos; se reintenta en el próximo tick.
        self._stats.fetch_failures += 1
        self._consecutive_failures += 1
        self._last_error = str(error)
        if self._connectivity != ConnectivityState.ERROR:
            self._error_since = self._clock()
            logger.warning("[SYNC] Connectivity %s -> error: %s", self._connectivity.value, error)
        else:
            logger.warning(
                "[SYNC] Fetch failed (%d consecutive): %s",
                self._consecutive_failures,
                error,
            )
        self._connectivity = ConnectivityState.ERROR
        MONITOR_FETCHES.labels(status="failed").inc()
        MONITOR_CONNECTIVITY.state(self._connectivity.value)
        MONITOR_CONSECUTIVE_FAILURES.set(self._consecutive_failures)

    def _notify(self) -> MonitorSnapshot:
        snap = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception:
                logger.exception("[SYNC] Observer %r failed", observer)
        return snap

    def get_stats(self) -> dict:
        """Estadísticas del loop."""
        return {
            "running": self._running,
            "system_state": self._system_state.value,
            "connectivity": self._connectivity.value,
            "cycles": self._stats.cycles,
            "readings_received": self._stats.readings_received,
            "fetch_failures": self._stats.fetch_failures,
            "transitions": self._stats.transitions,
            "events_logged": self._stats.events_logged,
            "event_log_failures": self._stats.event_log_failures,
            "last_cycle_at": self._stats.last_cycle_at,
            "config": {
                "interval_seconds": self._config.interval_seconds,
                "window_size": self._config.window_size,
            },
        }
