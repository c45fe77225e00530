"""Validación de payloads de lectura enviados por el dispositivo.

Formato esperado:
{
    "pH": 7.21,
    "orp": 655.0,
    "conductivity": 498.3,
    "timestamp": 1760000000000   # opcional, epoch ms
}

Los rangos físicos NO se validan aquí (pH negativo, conductividad
negativa, etc. se aceptan); eso es responsabilidad del clasificador.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.domain import SensorReading

from ..errors import ReadingValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("pH", "orp", "conductivity")

# Epoch ms must fit a signed 64-bit integer.
MAX_TIMESTAMP_MS = 2**63


class SensorReadingPayload(BaseModel):
    """Schema de validación; acepta números o strings numéricos."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ph: float = Field(..., alias="pH")
    orp: float
    conductivity: float
    timestamp: Optional[float] = None

    @field_validator("ph", "orp", "conductivity")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if math.isnan(v):
            raise ValueError("Value is NaN")
        if math.isinf(v):
            raise ValueError("Value is infinite")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: Optional[float]) -> Optional[float]:
        if v is None:
            return v
        if math.isnan(v) or math.isinf(v):
            raise ValueError("Timestamp must be a finite number")
        if not -MAX_TIMESTAMP_MS < v < MAX_TIMESTAMP_MS:
            raise ValueError("Timestamp out of range (epoch milliseconds)")
        return v

    def to_reading(self, received_at_ms: int) -> SensorReading:
        ts = int(self.timestamp) if self.timestamp is not None else received_at_ms
        return SensorReading(
            ph=self.ph,
            orp=self.orp,
            conductivity=self.conductivity,
            timestamp=ts,
        )


@dataclass
class ValidationResult:
    """Resultado de validación."""

    valid: bool
    payload: Optional[SensorReadingPayload] = None
    error: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)


def validate_reading_payload(data: Mapping[str, Any]) -> ValidationResult:
    """Valida el payload de una lectura.

    Un campo requerido presente pero null cuenta como ausente.
    """
    missing = [name for name in REQUIRED_FIELDS if data.get(name) is None]
    if missing:
        return ValidationResult(
            valid=False,
            error=f"Missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )

    try:
        payload = SensorReadingPayload.model_validate(dict(data))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        return ValidationResult(valid=False, error=f"Invalid sensor reading: {problems}")

    return ValidationResult(valid=True, payload=payload)


def parse_reading(data: Mapping[str, Any], received_at_ms: Optional[int] = None) -> SensorReading:
    """Construye la SensorReading o lanza ReadingValidationError (sin efectos)."""
    result = validate_reading_payload(data)
    if not result.valid:
        logger.warning("[INGEST] Sensor data validation error: %s", result.error)
        raise ReadingValidationError(result.error)

    if received_at_ms is None:
        received_at_ms = int(time.time() * 1000)
    return result.payload.to_reading(received_at_ms)
