from helixevo.genome import Entity, EntityBuilder, ScoreLevel, Tetrad
from helixevo.kernel import Kernel
from helixevo.rotation import RotationState

__version__ = "0.1.0"

__all__ = [
    "Entity",
    "EntityBuilder",
    "Kernel",
    "RotationState",
    "ScoreLevel",
    "Tetrad",
    "__version__",
]
