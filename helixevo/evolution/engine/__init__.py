from helixevo.evolution.engine.config import EvolutionConfig
from helixevo.evolution.engine.core import EvolutionEngine, EvolutionOutcome

__all__ = ["EvolutionConfig", "EvolutionEngine", "EvolutionOutcome"]
