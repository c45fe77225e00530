"""Filtros del log de eventos (aplicados después de leer, sin push-down)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from common.domain import EventLogEntry, SystemState


def format_event_date(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def format_event_time(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%H:%M:%S")


@dataclass(frozen=True)
class EventLogFilter:
    """Criterios opcionales; None significa "todos"."""

    state: Optional[SystemState] = None
    type: Optional[str] = None
    search: Optional[str] = None

    def matches(self, entry: EventLogEntry) -> bool:
        if self.state is not None and entry.system_state != self.state:
            return False
        if self.type is not None and entry.type != self.type:
            return False

        query = (self.search or "").strip().lower()
        if not query:
            return True

        haystack = (
            entry.type,
            entry.message,
            entry.system_state.value,
            format_event_date(entry.timestamp),
            format_event_time(entry.timestamp),
        )
        return any(query in field.lower() for field in haystack)


def apply_filter(entries: Iterable[EventLogEntry], criteria: EventLogFilter) -> List[EventLogEntry]:
    return [e for e in entries if criteria.matches(e)]
