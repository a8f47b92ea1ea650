from __future__ import annotations

import random
import threading

from loguru import logger
from pydantic import BaseModel, Field

from helixevo.evolution.crossover import assemble_offspring, sample_crossover_points
from helixevo.evolution.engine.config import EvolutionConfig
from helixevo.evolution.engine.metrics import EvolutionMetrics
from helixevo.evolution.operators import MutationKind, apply_operator
from helixevo.exceptions import ProtectionLostError, SenescenceError
from helixevo.genome.entity import AGING_BUDGET_MAX, SENESCENCE_THRESHOLD, Entity
from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad
from helixevo.rotation.engine import RotationStats
from helixevo.rotation.state import RotationState

__all__ = ["EvolutionEngine", "EvolutionOutcome", "RECOMBINATION_OPERATOR"]

RECOMBINATION_OPERATOR = "recombination"


class EvolutionOutcome(BaseModel):
    """Structured report of a single successful evolution step."""

    score_before: int
    score_after: int
    mutation_count: int = Field(description="Mutation counter of the new entity")
    operator: MutationKind
    success: bool = Field(description="True iff the score did not decrease")
    aging_lost: int = Field(ge=0)
    protection_lost: bool
    signal_ratio_before: float
    signal_ratio_after: float
    biological_age_before: float = Field(ge=0.0, le=1.0)
    biological_age_after: float = Field(ge=0.0, le=1.0)
    rotation_state: RotationState | None = Field(
        default=None, description="Rotation phase the step ran in (informational)"
    )

    @property
    def score_delta(self) -> int:
        return self.score_after - self.score_before


class EvolutionEngine:
    """Single-parent mutation and two-parent recombination.

    The engine never mutates its inputs: every call works on a fresh entity.
    Its RNG and metrics are guarded by one lock so calls may be offloaded to
    worker threads.
    """

    def __init__(
        self,
        config: EvolutionConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or EvolutionConfig()
        self._rng = rng or random.Random(self.config.seed)
        self._lock = threading.Lock()
        self.metrics = EvolutionMetrics()

    def evolve(
        self, entity: Entity, snapshot: RotationStats | None = None
    ) -> tuple[Entity, EvolutionOutcome]:
        """Mutate a copy of *entity* once.

        Raises:
            SenescenceError: aging budget below threshold, or division refused.
            ProtectionLostError: no protection copies left.
        """
        with self._lock:
            if entity.aging_budget < SENESCENCE_THRESHOLD:
                self.metrics.senescence_failures += 1
                raise SenescenceError(
                    f"Senescence: aging budget {entity.aging_budget} exhausted"
                )
            if entity.protection_copies == 0:
                self.metrics.protection_failures += 1
                raise ProtectionLostError("Protection lost: no protection copies left")

            rng = self._rng
            kind = MutationKind.random(rng)
            sequence = list(entity.sequence)
            apply_operator(sequence, kind, rng)

            mutated = Entity(
                sequence=sequence,
                mutation_count=entity.mutation_count,
                protection_copies=entity.protection_copies,
                aging_budget=entity.aging_budget,
                division_count=entity.division_count,
                parent_ids=[entity.external_id] if entity.external_id else [],
                last_operator=kind.value,
            )

            budget_before = mutated.aging_budget
            if not mutated.divide(rng):
                self.metrics.senescence_failures += 1
                raise SenescenceError(
                    f"Senescence: division refused after {mutated.division_count} divisions"
                )
            aging_lost = budget_before - mutated.aging_budget

            protection_lost = False
            if (
                rng.random() < self.config.protection_loss_probability
                and mutated.protection_copies > 0
            ):
                mutated.protection_copies -= 1
                protection_lost = True

            mutated.mutation_count += 1
            mutated.refresh()

            outcome = EvolutionOutcome(
                score_before=entity.score,
                score_after=mutated.score,
                mutation_count=mutated.mutation_count,
                operator=kind,
                success=mutated.score >= entity.score,
                aging_lost=aging_lost,
                protection_lost=protection_lost,
                signal_ratio_before=entity.signal_ratio(),
                signal_ratio_after=mutated.signal_ratio(),
                biological_age_before=entity.biological_age(),
                biological_age_after=mutated.biological_age(),
                rotation_state=snapshot.current if snapshot else None,
            )
            self.metrics.record_evolution(outcome.success, protection_lost)

        if outcome.success:
            logger.debug(
                "[EvolutionEngine] {} {} -> {} | signal {:.2f} -> {:.2f}",
                kind.value,
                outcome.score_before,
                outcome.score_after,
                outcome.signal_ratio_before,
                outcome.signal_ratio_after,
            )
        else:
            logger.debug(
                "[EvolutionEngine] Degradation {} -> {} ({})",
                outcome.score_before,
                outcome.score_after,
                kind.value,
            )
        return mutated, outcome

    def recombine(self, parent_a: Entity, parent_b: Entity) -> Entity:
        with self._lock:
            rng = self._rng
            points = sample_crossover_points(
                rng,
                max_points=self.config.max_crossover_points,
                min_spacing=self.config.min_crossover_spacing,
            )
            sequence = assemble_offspring(
                parent_a.sequence,
                parent_b.sequence,
                points,
                start_with_first=rng.random() < 0.5,
            )
            if rng.random() < self.config.post_recombination_mutation_probability:
                sequence[rng.randrange(SEQUENCE_LENGTH)] = Tetrad.random(rng)

            offspring = Entity(
                sequence=sequence,
                mutation_count=1,
                protection_copies=max(
                    parent_a.protection_copies, parent_b.protection_copies
                ),
                aging_budget=AGING_BUDGET_MAX,
                parent_ids=[p.external_id for p in (parent_a, parent_b) if p.external_id],
                last_operator=RECOMBINATION_OPERATOR,
            )
            self.metrics.recombinations += 1

        logger.debug(
            "[EvolutionEngine] Recombination {}+{} -> {} (points={})",
            parent_a.score,
            parent_b.score,
            offspring.score,
            points,
        )
        return offspring
