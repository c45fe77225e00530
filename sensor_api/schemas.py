from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.domain import (
    ConnectivityState,
    EventLogEntry,
    SensorReading,
    SensorSnapshot,
    SystemState,
)


class SensorReadingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ph: float = Field(..., alias="pH")
    orp: float
    conductivity: float
    timestamp: int

    @classmethod
    def from_domain(cls, reading: SensorReading) -> "SensorReadingOut":
        return cls(
            ph=reading.ph,
            orp=reading.orp,
            conductivity=reading.conductivity,
            timestamp=reading.timestamp,
        )


class SensorDataAck(BaseModel):
    success: bool = True
    message: str = "Sensor data received"
    data: SensorReadingOut


class ReadingHistoryOut(BaseModel):
    count: int
    data: List[SensorReadingOut] = Field(default_factory=list)


class SensorSnapshotModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ph: float = Field(..., alias="pH")
    orp: float
    conductivity: float

    def to_domain(self) -> SensorSnapshot:
        return SensorSnapshot(ph=self.ph, orp=self.orp, conductivity=self.conductivity)

    @classmethod
    def from_domain(cls, snapshot: SensorSnapshot) -> "SensorSnapshotModel":
        return cls(ph=snapshot.ph, orp=snapshot.orp, conductivity=snapshot.conductivity)


class EventLogIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    message: str
    system_state: SystemState = Field(..., alias="systemState")
    sensor_data: Optional[SensorSnapshotModel] = Field(default=None, alias="sensorData")


class EventLogEntryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    message: str
    system_state: SystemState = Field(..., alias="systemState")
    sensor_data: Optional[SensorSnapshotModel] = Field(default=None, alias="sensorData")
    timestamp: int

    @classmethod
    def from_domain(cls, entry: EventLogEntry) -> "EventLogEntryOut":
        return cls(
            type=entry.type,
            message=entry.message,
            system_state=entry.system_state,
            sensor_data=SensorSnapshotModel.from_domain(entry.sensor_data) if entry.sensor_data else None,
            timestamp=entry.timestamp,
        )


class EventLogAck(BaseModel):
    success: bool = True
    message: str = "Event logged"
    data: EventLogEntryOut


class EventLogListOut(BaseModel):
    count: int
    data: List[EventLogEntryOut] = Field(default_factory=list)


class MonitorStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    system_state: SystemState = Field(..., alias="systemState")
    connectivity: ConnectivityState
    latest: Optional[SensorReadingOut] = None
    window: Dict[str, List[float]] = Field(default_factory=dict)
    last_data_received_at: Optional[int] = Field(default=None, alias="lastDataReceivedAt")
    consecutive_failures: int = Field(default=0, alias="consecutiveFailures")
    error_since: Optional[int] = Field(default=None, alias="errorSince")
    last_error: Optional[str] = Field(default=None, alias="lastError")
