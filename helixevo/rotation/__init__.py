from helixevo.rotation.engine import RotationEngine, RotationStats, SharedRotationEngine
from helixevo.rotation.state import RotationState, suggested_state

__all__ = [
    "RotationEngine",
    "RotationState",
    "RotationStats",
    "SharedRotationEngine",
    "suggested_state",
]
