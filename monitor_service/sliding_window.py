from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Optional

from common.domain import SensorReading

DEFAULT_WINDOW_SIZE = 16

METRICS = ("pH", "orp", "conductivity")


class SensorWindow:
    """Ventana deslizante acotada por métrica (pH, ORP, conductividad).

    - Un deque de capacidad fija por métrica; al llegar una lectura nueva
      con la ventana llena se descarta la más antigua (FIFO).
    - Orden de lectura: más antigua -> más reciente.
    """

    def __init__(self, size: int = DEFAULT_WINDOW_SIZE) -> None:
        if size < 2:
            raise ValueError(f"window size must be >= 2, got {size}")
        self._size = size
        self._buffers: Dict[str, Deque[float]] = {m: deque(maxlen=size) for m in METRICS}
        self._latest: Optional[SensorReading] = None

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return len(self._buffers["pH"])

    def push(self, reading: SensorReading) -> None:
        self._buffers["pH"].append(reading.ph)
        self._buffers["orp"].append(reading.orp)
        self._buffers["conductivity"].append(reading.conductivity)
        self._latest = reading

    @property
    def ph(self) -> List[float]:
        return list(self._buffers["pH"])

    @property
    def orp(self) -> List[float]:
        return list(self._buffers["orp"])

    @property
    def conductivity(self) -> List[float]:
        return list(self._buffers["conductivity"])

    @property
    def latest(self) -> Optional[SensorReading]:
        return self._latest

    def to_dict(self) -> Dict[str, List[float]]:
        return {m: list(buf) for m, buf in self._buffers.items()}
