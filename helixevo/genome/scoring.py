"""Extended ("consensus-grade") scoring.

The 27 symbols are laid out as a 3x3x3 cube with ``index = x + 3*y + 9*z``;
``as_cube`` therefore returns an array indexed ``[z, y, x]``. All bonuses and
weights below are fixed calibration constants and must not be retuned: the
classification tiers depend on them.
"""

from __future__ import annotations

import hashlib
import struct
from typing import TYPE_CHECKING

import numpy as np

from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad

if TYPE_CHECKING:
    from helixevo.genome.entity import Entity

SYMMETRY_MATCH_THRESHOLD = SEQUENCE_LENGTH * 2 // 3
SYMMETRY_BONUSES = {90: 5000.0, 180: 3000.0, 270: 2000.0}
BELL_CAP = 2.828
MAX_LAYER_ENTROPY = 1.386
TRANSCENDENT_FLOOR = 10000.0
TRANSCENDENT_MULTIPLIER = 1.5

_COMPLEMENT = np.array([int(Tetrad(v).complement()) for v in range(4)], dtype=np.int64)


def as_array(sequence: list[Tetrad]) -> np.ndarray:
    return np.fromiter((int(t) for t in sequence), dtype=np.int64, count=SEQUENCE_LENGTH)


def as_cube(sequence: list[Tetrad]) -> np.ndarray:
    return as_array(sequence).reshape(3, 3, 3)


def rotate_cube(sequence: list[Tetrad], angle: int) -> np.ndarray:
    """Rotate every z-layer by *angle* degrees; returns the flat sequence."""
    cube = as_cube(sequence)
    rotated = np.empty_like(cube)
    for x in range(3):
        for y in range(3):
            if angle == 90:
                nx, ny = y, 2 - x
            elif angle == 180:
                nx, ny = 2 - x, 2 - y
            elif angle == 270:
                nx, ny = 2 - y, x
            else:
                nx, ny = x, y
            rotated[:, ny, nx] = cube[:, y, x]
    return rotated.reshape(-1)


def has_rotational_symmetry(sequence: list[Tetrad], angle: int) -> bool:
    matches = int(np.count_nonzero(as_array(sequence) == rotate_cube(sequence, angle)))
    return matches > SYMMETRY_MATCH_THRESHOLD


def fractal_similarity(sequence: list[Tetrad]) -> float:
    """Mean pairwise match ratio between the eight 2x2x2 octant sub-cubes."""
    cube = as_cube(sequence)
    blocks = [
        cube[sz : sz + 2, sy : sy + 2, sx : sx + 2]
        for sx in range(2)
        for sy in range(2)
        for sz in range(2)
    ]
    total = 0.0
    comparisons = 0
    for i, first in enumerate(blocks):
        for j, second in enumerate(blocks):
            if i == j:
                continue
            total += np.count_nonzero(first == second) / 8.0
            comparisons += 1
    return total / comparisons if comparisons else 0.0


def bell_correlation(sequence: list[Tetrad]) -> float:
    """CHSH-style statistic over equal and complementary-valued symbol pairs."""
    values = as_array(sequence)
    i, j = np.triu_indices(SEQUENCE_LENGTH, k=1)
    a, b = values[i], values[j]
    equal = a == b
    opposed = a == 3 - b
    counted = equal | opposed
    pair_count = int(np.count_nonzero(counted))
    if pair_count == 0:
        return 0.0
    signs = np.where(equal, 1.0, -1.0)[counted]
    buckets = ((i + j) % 4)[counted]
    correlations = np.bincount(buckets, weights=signs, minlength=4) / pair_count
    s = abs(correlations[0] - correlations[1] + correlations[2] + correlations[3])
    return float(min(s, BELL_CAP))


def hyper_symmetry(sequence: list[Tetrad]) -> float:
    """Per-layer Shannon entropy, summed and normalised to [0, 1]."""
    cube = as_cube(sequence)
    score = 0.0
    for layer in cube:
        counts = np.bincount(layer.reshape(-1), minlength=4)
        p = counts[counts > 0] / 9.0
        score += float(-(p * np.log(p)).sum())
    return min(score / (3.0 * MAX_LAYER_ENTROPY), 1.0)


def collapse_variance(sequence: list[Tetrad]) -> float:
    values = as_array(sequence)
    collapsed = np.stack(
        [
            values,
            (values + 1) % 4,
            (values ^ np.roll(values, -1)) % 4,
            _COMPLEMENT[values],
            np.roll(values, -9),
        ]
    )
    variance = float(collapsed.var(axis=0).sum())
    return min(variance / SEQUENCE_LENGTH / 2.0, 1.0)


def extended_score(entity: Entity) -> int:
    seq = entity.sequence
    score = 0.0

    score += entity.complexity() * 150.0
    score += entity.symbol_balance() * 80.0
    score += entity.protection_copies * 50.0
    score += entity.aging_budget / 50.0

    for angle, bonus in SYMMETRY_BONUSES.items():
        if has_rotational_symmetry(seq, angle):
            score += bonus

    fractal = fractal_similarity(seq)
    if fractal > 0.8:
        score += 8000.0
    if fractal > 0.9:
        score += 15000.0
    score += fractal * 10000.0

    bell = bell_correlation(seq)
    if bell > 2.0:
        score += 10000.0
    if bell > 2.5:
        score += 20000.0
    if bell > BELL_CAP:
        score += 40000.0
    score += bell * 15000.0

    hyper = hyper_symmetry(seq)
    if hyper > 0.7:
        score += 20000.0
    if hyper > 0.9:
        score += 50000.0
    score += hyper * 30000.0

    score += collapse_variance(seq) * 20000.0

    if score > TRANSCENDENT_FLOOR:
        score *= TRANSCENDENT_MULTIPLIER

    return int(score)


def hyper_signature(entity: Entity) -> str:
    """Hex SHA-512 binding the content hash and score to the cube metrics.

    Digest input: the raw content hash, the score as 4-byte little-endian,
    then fractal similarity, Bell statistic and hyper-symmetry as
    little-endian doubles.
    """
    seq = entity.sequence
    digest = hashlib.sha512()
    digest.update(bytes.fromhex(entity.content_hash))
    digest.update(entity.score.to_bytes(4, "little"))
    digest.update(
        struct.pack(
            "<3d",
            fractal_similarity(seq),
            bell_correlation(seq),
            hyper_symmetry(seq),
        )
    )
    return digest.hexdigest()
