from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from helixevo.evolution.crossover import MAX_CROSSOVER_POINTS, MIN_CROSSOVER_SPACING


class EvolutionConfig(BaseModel):
    """Configuration options controlling EvolutionEngine behaviour."""

    protection_loss_probability: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Chance of losing one protection copy per evolution step",
    )
    post_recombination_mutation_probability: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Chance of one extra point edit after crossover assembly",
    )
    max_crossover_points: int = Field(default=MAX_CROSSOVER_POINTS, ge=1)
    min_crossover_spacing: int = Field(default=MIN_CROSSOVER_SPACING, ge=1)
    seed: int | None = Field(
        default=None, description="Seed for the engine's private RNG (None = entropy)"
    )
    model_config = ConfigDict(extra="forbid")
