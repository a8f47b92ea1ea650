from __future__ import annotations

import random
from typing import Sequence, TypeVar

from helixevo.genome.symbols import SEQUENCE_LENGTH

T = TypeVar("T")

MAX_CROSSOVER_POINTS = 4
MIN_CROSSOVER_SPACING = 5


def sample_crossover_points(
    rng: random.Random | None = None,
    *,
    max_points: int = MAX_CROSSOVER_POINTS,
    min_spacing: int = MIN_CROSSOVER_SPACING,
    length: int = SEQUENCE_LENGTH,
) -> list[int]:
    """Draw 1..*max_points* strictly increasing points at least *min_spacing* apart.

    Points live in ``[min_spacing, length - 1)``. Sampling stops early once no
    valid position is left after the previous point.
    """
    rng = rng or random.Random()
    wanted = rng.randint(1, max_points)
    upper = length - 1
    points: list[int] = []
    last = 0
    for _ in range(wanted):
        lower = min(last + min_spacing, length - 2)
        if lower >= length - 2:
            break
        point = rng.randrange(lower, upper)
        points.append(point)
        last = point
    return points


def assemble_offspring(
    first: Sequence[T],
    second: Sequence[T],
    points: Sequence[int],
    start_with_first: bool = True,
) -> list[T]:
    """Alternate between parents, switching source at every crossover point."""
    use_first = start_with_first
    pending = iter(sorted(points))
    next_point = next(pending, None)
    child: list[T] = []
    for i in range(len(first)):
        while next_point is not None and i >= next_point:
            use_first = not use_first
            next_point = next(pending, None)
        child.append(first[i] if use_first else second[i])
    return child
