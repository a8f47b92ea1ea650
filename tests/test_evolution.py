"""
Tests for EvolutionEngine: single-parent evolution and recombination.
"""

import random

import pytest

from helixevo.evolution.engine import EvolutionConfig, EvolutionEngine
from helixevo.evolution.engine.core import RECOMBINATION_OPERATOR
from helixevo.exceptions import ProtectionLostError, SenescenceError
from helixevo.genome.builder import build
from helixevo.genome.entity import AGING_BUDGET_MAX, DIVISION_LIMIT
from helixevo.rotation.engine import RotationEngine
from helixevo.rotation.state import RotationState


def _engine(seed=0, **overrides):
    return EvolutionEngine(EvolutionConfig(**overrides), rng=random.Random(seed))


class TestPreconditions:
    """Terminal outcomes are raised before anything changes."""

    def test_protection_lost_mutates_nothing(self, mixed):
        entity = build(mixed.sequence_text, protection_copies=0)
        before = entity.model_dump()
        engine = _engine()
        with pytest.raises(ProtectionLostError):
            engine.evolve(entity)
        assert entity.model_dump() == before
        assert engine.metrics.protection_failures == 1
        assert engine.metrics.evolutions == 0

    def test_senescence(self):
        entity = build("A" * 27, aging_budget=99)
        with pytest.raises(SenescenceError):
            _engine().evolve(entity)

    def test_senescence_checked_before_protection(self):
        entity = build("A" * 27, protection_copies=0, aging_budget=50)
        with pytest.raises(SenescenceError):
            _engine().evolve(entity)

    def test_division_limit_is_senescence(self, mixed):
        mixed.division_count = DIVISION_LIMIT
        with pytest.raises(SenescenceError):
            _engine().evolve(mixed)


class TestEvolve:
    def test_outcome_fields(self, mixed):
        mixed.external_id = "parent-1"
        engine = _engine(seed=42)
        evolved, outcome = engine.evolve(mixed)

        assert evolved is not mixed
        assert evolved.mutation_count == mixed.mutation_count + 1
        assert evolved.division_count == mixed.division_count + 1
        assert 50 <= outcome.aging_lost < 150
        assert evolved.aging_budget == mixed.aging_budget - outcome.aging_lost
        assert evolved.parent_ids == ["parent-1"]
        assert evolved.external_id is None
        assert evolved.last_operator == outcome.operator.value
        assert outcome.score_before == mixed.score
        assert outcome.score_after == evolved.score
        assert outcome.success == (evolved.score >= mixed.score)
        assert evolved.score == evolved.calculate_score()

    def test_delta_and_biological_age(self, mixed):
        evolved, outcome = _engine(seed=8).evolve(mixed)
        assert outcome.score_delta == evolved.score - mixed.score
        assert outcome.biological_age_before == mixed.biological_age()
        assert outcome.biological_age_after == evolved.biological_age()
        assert outcome.biological_age_after > outcome.biological_age_before

    def test_input_not_mutated(self, mixed):
        before = mixed.model_dump()
        _engine(seed=1).evolve(mixed)
        assert mixed.model_dump() == before

    def test_protection_loss_flagged(self, mixed):
        engine = _engine(protection_loss_probability=1.0)
        evolved, outcome = engine.evolve(mixed)
        assert outcome.protection_lost
        assert evolved.protection_copies == mixed.protection_copies - 1
        assert engine.metrics.protection_losses == 1

    def test_no_protection_loss_by_zero_probability(self, mixed):
        evolved, outcome = _engine(protection_loss_probability=0.0).evolve(mixed)
        assert not outcome.protection_lost
        assert evolved.protection_copies == mixed.protection_copies

    def test_snapshot_is_informational(self, mixed):
        rotation = RotationEngine()
        snapshot = rotation.stats()
        _, outcome = _engine().evolve(mixed, snapshot)
        assert outcome.rotation_state is RotationState.STORAGE
        assert rotation.total_rotations == 0

    def test_metrics_count(self, mixed):
        engine = _engine(seed=9)
        for _ in range(5):
            engine.evolve(mixed)
        m = engine.metrics
        assert m.evolutions == 5
        assert m.improvements + m.degradations == 5

    def test_seeded_engines_agree(self, mixed):
        first, _ = _engine(seed=77).evolve(mixed)
        second, _ = _engine(seed=77).evolve(mixed)
        assert first.sequence == second.sequence
        assert first.score == second.score


class TestRecombine:
    def test_positions_come_from_parents(self):
        a = build("A" * 27, protection_copies=25)
        b = build("C" * 27, protection_copies=31)
        engine = _engine(post_recombination_mutation_probability=0.0)
        for _ in range(50):
            child = engine.recombine(a, b)
            assert all(t in (a.sequence[i], b.sequence[i]) for i, t in enumerate(child.sequence))

    def test_offspring_fields(self):
        a = build("A" * 27, protection_copies=25, aging_budget=300)
        b = build("C" * 27, protection_copies=31, aging_budget=9000)
        a.external_id, b.external_id = "a", "b"
        child = _engine(seed=3).recombine(a, b)
        assert child.mutation_count == 1
        assert child.protection_copies == 31
        assert child.aging_budget == AGING_BUDGET_MAX
        assert child.parent_ids == ["a", "b"]
        assert child.last_operator == RECOMBINATION_OPERATOR
        assert child.score == child.calculate_score()

    def test_both_parents_contribute(self):
        a = build("A" * 27)
        b = build("C" * 27)
        child = _engine(seed=5, post_recombination_mutation_probability=0.0).recombine(a, b)
        symbols = set(child.sequence)
        assert len(symbols) == 2

    def test_config_rejects_unknown_keys(self):
        with pytest.raises(ValueError):
            EvolutionConfig(mutation_rate=0.5)
