from helixevo.runner.config import DaemonConfig
from helixevo.runner.daemon import RotationDaemon
from helixevo.runner.events import DegradationEvent, ForcedRotation, TickReport

__all__ = [
    "DaemonConfig",
    "DegradationEvent",
    "ForcedRotation",
    "RotationDaemon",
    "TickReport",
]
