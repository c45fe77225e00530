"""Consultas de solo lectura sobre el log de eventos."""

from .event_filter import EventLogFilter, apply_filter, format_event_date, format_event_time

__all__ = [
    "EventLogFilter",
    "apply_filter",
    "format_event_date",
    "format_event_time",
]
