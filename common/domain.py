"""Modelo de dominio compartido entre la API y el monitor.

Los nombres de campo en formato wire (`pH`, `systemState`, `sensorData`)
se mantienen tal como los envía el dispositivo y los consume la UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class SystemState(str, Enum):
    """Estado de seguridad química derivado por el clasificador."""

    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def _missing_(cls, value: object) -> Optional["SystemState"]:
        # "CRITICAL", "Critical" -> critical
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class ConnectivityState(str, Enum):
    """Salud del enlace de datos del monitor (independiente de SystemState)."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class SensorSnapshot:
    """Los tres valores de una lectura, sin timestamp."""

    ph: float
    orp: float
    conductivity: float

    def to_dict(self) -> dict:
        return {"pH": self.ph, "orp": self.orp, "conductivity": self.conductivity}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SensorSnapshot":
        return cls(
            ph=float(data["pH"]),
            orp=float(data["orp"]),
            conductivity=float(data["conductivity"]),
        )


@dataclass(frozen=True)
class SensorReading:
    """Lectura de sensor inmutable; timestamp en epoch milisegundos."""

    ph: float
    orp: float
    conductivity: float
    timestamp: int

    @property
    def snapshot(self) -> SensorSnapshot:
        return SensorSnapshot(ph=self.ph, orp=self.orp, conductivity=self.conductivity)

    def to_dict(self) -> dict:
        return {
            "pH": self.ph,
            "orp": self.orp,
            "conductivity": self.conductivity,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SensorReading":
        return cls(
            ph=float(data["pH"]),
            orp=float(data["orp"]),
            conductivity=float(data["conductivity"]),
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class EventLogEntry:
    """Registro de una transición de SystemState."""

    type: str
    message: str
    system_state: SystemState
    sensor_data: Optional[SensorSnapshot]
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "systemState": self.system_state.value,
            "sensorData": self.sensor_data.to_dict() if self.sensor_data else None,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventLogEntry":
        sensor_data = data.get("sensorData")
        return cls(
            type=str(data.get("type") or ""),
            message=str(data.get("message") or ""),
            system_state=SystemState(data["systemState"]),
            sensor_data=SensorSnapshot.from_dict(sensor_data) if sensor_data else None,
            timestamp=int(data["timestamp"]),
        )
