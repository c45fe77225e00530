"""Tipo y mensaje del evento según el nuevo estado."""

from __future__ import annotations

from typing import Dict, Tuple

from common.domain import SystemState

TRANSITION_EVENTS: Dict[SystemState, Tuple[str, str]] = {
    SystemState.SAFE: ("SAFE", "System normal"),
    SystemState.WARNING: ("WARNING", "Logic alert - pH change detected"),
    SystemState.CRITICAL: ("CRITICAL_ALERT", "PUMP POWER SEVERED - Dangerous pH detected"),
}


def transition_event(state: SystemState) -> Tuple[str, str]:
    """(type, message) para el EventLogEntry de una transición a `state`."""
    return TRANSITION_EVENTS[state]
