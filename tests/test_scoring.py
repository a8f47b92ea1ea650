"""
Tests for the extended cube-based score.
"""

import random

import numpy as np
import pytest

from helixevo.genome.builder import build
from helixevo.genome.scoring import (
    as_array,
    as_cube,
    bell_correlation,
    collapse_variance,
    extended_score,
    fractal_similarity,
    has_rotational_symmetry,
    hyper_symmetry,
    hyper_signature,
    rotate_cube,
)
from helixevo.genome.symbols import Tetrad


class TestCubeLayout:
    def test_index_mapping(self):
        """index = x + 3*y + 9*z lands at cube[z, y, x]."""
        seq = [Tetrad.A] * 27
        seq[1 + 3 * 2 + 9 * 1] = Tetrad.C
        cube = as_cube(seq)
        assert cube[1, 2, 1] == int(Tetrad.C)
        assert int(cube.sum()) == int(Tetrad.C)

    @pytest.mark.parametrize("angle, inverse", [(90, 270), (180, 180), (270, 90)])
    def test_rotation_inverse(self, mixed, angle, inverse):
        rotated = [Tetrad(int(v)) for v in rotate_cube(mixed.sequence, angle)]
        assert np.array_equal(rotate_cube(rotated, inverse), as_array(mixed.sequence))

    def test_uniform_sequence_is_symmetric(self, all_a):
        for angle in (90, 180, 270):
            assert has_rotational_symmetry(all_a.sequence, angle)


class TestAllAComponents:
    """Component values of the all-A fixture."""

    def test_fractal(self, all_a):
        assert fractal_similarity(all_a.sequence) == 1.0

    def test_bell(self, all_a):
        assert bell_correlation(all_a.sequence) == pytest.approx(169 / 351)

    def test_hyper_symmetry(self, all_a):
        assert hyper_symmetry(all_a.sequence) == 0.0

    def test_collapse_variance(self, all_a):
        assert collapse_variance(all_a.sequence) == pytest.approx(0.12)

    def test_extended_score(self, all_a):
        assert extended_score(all_a) == 80913


class TestExtendedScore:
    def test_deterministic(self):
        rng = random.Random(5)
        for _ in range(20):
            text = "".join(rng.choice("ATGC") for _ in range(27))
            assert extended_score(build(text)) == extended_score(build(text))

    def test_bounded_components(self):
        rng = random.Random(11)
        for _ in range(50):
            seq = [Tetrad.random(rng) for _ in range(27)]
            assert 0.0 <= fractal_similarity(seq) <= 1.0
            assert 0.0 <= bell_correlation(seq) <= 2.828
            assert 0.0 <= hyper_symmetry(seq) <= 1.0
            assert 0.0 <= collapse_variance(seq) <= 1.0

    def test_extended_score_does_not_touch_basic_score(self, mixed):
        before = mixed.score
        extended_score(mixed)
        assert mixed.score == before


class TestHyperSignature:
    def test_format_and_determinism(self, all_a):
        signature = hyper_signature(all_a)
        assert len(signature) == 128
        int(signature, 16)
        assert hyper_signature(build("A" * 27)) == signature

    def test_differs_from_content_hash(self, all_a):
        assert hyper_signature(all_a)[:64] != all_a.content_hash

    def test_edit_changes_signature(self, all_a):
        before = hyper_signature(all_a)
        all_a.edit_at(13, Tetrad.G)
        assert hyper_signature(all_a) != before

    def test_protection_changes_signature(self):
        assert hyper_signature(build("A" * 27, protection_copies=21)) != hyper_signature(
            build("A" * 27)
        )
