from helixevo.genome.builder import EntityBuilder, build
from helixevo.genome.entity import (
    AGING_BUDGET_MAX,
    DIVISION_LIMIT,
    REINFORCED_PROTECTION,
    SENESCENCE_THRESHOLD,
    STANDARD_PROTECTION,
    Entity,
)
from helixevo.genome.levels import ScoreLevel, classify
from helixevo.genome.scoring import extended_score, hyper_signature
from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad

__all__ = [
    "AGING_BUDGET_MAX",
    "DIVISION_LIMIT",
    "REINFORCED_PROTECTION",
    "SENESCENCE_THRESHOLD",
    "SEQUENCE_LENGTH",
    "STANDARD_PROTECTION",
    "Entity",
    "EntityBuilder",
    "ScoreLevel",
    "Tetrad",
    "build",
    "classify",
    "extended_score",
    "hyper_signature",
]
