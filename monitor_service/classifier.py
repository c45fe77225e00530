"""Clasificador de seguridad por pH.

Función pura del par (anterior, actual) de pH:

    delta = |actual - anterior|
    actual >= ph_high o actual <= ph_low                    -> CRITICAL
    delta > rate_delta o actual > ph_warn_high o < ph_warn_low -> WARNING
    resto                                                   -> SAFE

Los límites absolutos detectan excursiones sostenidas; el delta detecta
cambios bruscos dentro del rango nominal (inyección) antes de cruzar el
límite absoluto. ORP y conductividad se grafican pero no clasifican.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from common.config import Settings
from common.domain import SystemState


@dataclass(frozen=True)
class ClassifierThresholds:
    """Umbrales configurables (superficie de Settings)."""

    ph_high: float = 8.5
    ph_low: float = 6.5
    ph_warn_high: float = 8.0
    ph_warn_low: float = 6.8
    rate_delta: float = 0.5

    def __post_init__(self) -> None:
        if not (self.ph_low < self.ph_warn_low <= self.ph_warn_high < self.ph_high):
            raise ValueError(
                "thresholds must satisfy ph_low < ph_warn_low <= ph_warn_high < ph_high, "
                f"got low={self.ph_low} warn_low={self.ph_warn_low} "
                f"warn_high={self.ph_warn_high} high={self.ph_high}"
            )
        if self.rate_delta < 0:
            raise ValueError(f"rate_delta must be >= 0, got {self.rate_delta}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassifierThresholds":
        return cls(
            ph_high=settings.ph_high,
            ph_low=settings.ph_low,
            ph_warn_high=settings.ph_warn_high,
            ph_warn_low=settings.ph_warn_low,
            rate_delta=settings.ph_rate_delta,
        )


DEFAULT_THRESHOLDS = ClassifierThresholds()


def classify_ph(
    current: float,
    previous: float,
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> SystemState:
    delta = abs(current - previous)

    if current >= thresholds.ph_high or current <= thresholds.ph_low:
        return SystemState.CRITICAL
    if (
        delta > thresholds.rate_delta
        or current > thresholds.ph_warn_high
        or current < thresholds.ph_warn_low
    ):
        return SystemState.WARNING
    return SystemState.SAFE


def classify_window(
    ph_values: Sequence[float],
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> Optional[SystemState]:
    """Clasifica con los dos valores más recientes; None si hay menos de dos."""
    if len(ph_values) < 2:
        return None
    return classify_ph(ph_values[-1], ph_values[-2], thresholds)
