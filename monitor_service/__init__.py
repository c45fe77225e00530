"""Monitor de seguridad química: poll periódico, clasificación y log de transiciones.

Estructura:
- classifier.py: umbrales y clasificación pura por pH
- sliding_window.py: ventana acotada por métrica
- events.py: tipo/mensaje del evento por estado
- gateway.py: origen de lecturas / destino de eventos (HTTP o local)
- sync_loop.py: tarea periódica con observers
- cli.py: entry point `chem-monitor`
"""

from .classifier import DEFAULT_THRESHOLDS, ClassifierThresholds, classify_ph, classify_window
from .gateway import GatewayError, HttpSensorGateway, LocalSensorGateway, SensorGateway
from .sliding_window import SensorWindow
from .sync_loop import MonitorSnapshot, SyncLoop, SyncLoopConfig

__all__ = [
    "ClassifierThresholds",
    "DEFAULT_THRESHOLDS",
    "classify_ph",
    "classify_window",
    "GatewayError",
    "SensorGateway",
    "HttpSensorGateway",
    "LocalSensorGateway",
    "SensorWindow",
    "MonitorSnapshot",
    "SyncLoop",
    "SyncLoopConfig",
]
