from __future__ import annotations

from enum import Enum
import random

from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad

INVERSION_WINDOW = (2, 7)
JUNCTION_START_RANGE = (5, 22)
JUNCTION_SPAN = 3


class MutationKind(str, Enum):
    POINT_EDIT = "point_edit"
    INSERTION = "insertion"
    DELETION = "deletion"
    INVERSION = "inversion"
    TRANSLOCATION = "translocation"
    DUPLICATION = "duplication"
    RECOMBINATION_JUNCTION = "recombination_junction"

    @classmethod
    def random(cls, rng: random.Random | None = None) -> MutationKind:
        return (rng or random).choice(list(cls))


def apply_operator(
    sequence: list[Tetrad], kind: MutationKind, rng: random.Random | None = None
) -> None:
    """Apply exactly one operator to *sequence* in place."""
    rng = rng or random.Random()
    n = SEQUENCE_LENGTH

    if kind in (MutationKind.POINT_EDIT, MutationKind.INSERTION):
        # Fixed length: an insertion degenerates to a point edit.
        sequence[rng.randrange(n)] = Tetrad.random(rng)

    elif kind is MutationKind.DELETION:
        pos = rng.randrange(n)
        sequence[pos] = sequence[(pos + 1) % n]

    elif kind is MutationKind.INVERSION:
        length = rng.randint(*INVERSION_WINDOW)
        start = rng.randrange(n - length + 1)
        sequence[start : start + length] = sequence[start : start + length][::-1]

    elif kind is MutationKind.TRANSLOCATION:
        pos1, pos2 = rng.randrange(n), rng.randrange(n)
        sequence[pos1], sequence[pos2] = sequence[pos2], sequence[pos1]

    elif kind is MutationKind.DUPLICATION:
        src, dst = rng.randrange(n), rng.randrange(n)
        sequence[dst] = sequence[src]

    elif kind is MutationKind.RECOMBINATION_JUNCTION:
        start = rng.randrange(*JUNCTION_START_RANGE)
        for pos in range(start, min(start + JUNCTION_SPAN, n)):
            sequence[pos] = sequence[pos].complement()

    else:  # pragma: no cover
        raise ValueError(f"Unknown mutation operator: {kind}")
