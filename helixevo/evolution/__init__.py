from helixevo.evolution.engine import EvolutionConfig, EvolutionEngine, EvolutionOutcome
from helixevo.evolution.operators import MutationKind

__all__ = ["EvolutionConfig", "EvolutionEngine", "EvolutionOutcome", "MutationKind"]
