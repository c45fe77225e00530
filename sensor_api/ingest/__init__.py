"""Ingesta de lecturas del dispositivo."""

from .validation import SensorReadingPayload, ValidationResult, parse_reading, validate_reading_payload

__all__ = [
    "SensorReadingPayload",
    "ValidationResult",
    "parse_reading",
    "validate_reading_payload",
]
