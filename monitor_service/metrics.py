"""Métricas Prometheus del SyncLoop."""

from __future__ import annotations

from prometheus_client import Counter, Enum, Gauge

MONITOR_CONNECTIVITY = Enum(
    "chem_monitor_connectivity",
    "Data-link health of the synchronization loop",
    states=["connecting", "connected", "error"],
)

MONITOR_SYSTEM_STATE = Enum(
    "chem_monitor_system_state",
    "Latest derived chemical safety state",
    states=["safe", "warning", "critical"],
)

MONITOR_FETCHES = Counter(
    "chem_monitor_fetches_total",
    "Latest-reading fetches by outcome",
    ["status"],  # reading, no_data, failed
)

MONITOR_TRANSITIONS = Counter(
    "chem_monitor_transitions_total",
    "Detected SystemState transitions",
    ["state"],
)

MONITOR_EVENT_LOG_FAILURES = Counter(
    "chem_monitor_event_log_failures_total",
    "Transition events that could not be appended to the event log",
)

MONITOR_CONSECUTIVE_FAILURES = Gauge(
    "chem_monitor_consecutive_failures",
    "Consecutive failed fetches (0 while connected)",
)
