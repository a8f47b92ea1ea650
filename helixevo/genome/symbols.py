from __future__ import annotations

from enum import IntEnum
import random

from helixevo.exceptions import ValidationError

SEQUENCE_LENGTH = 27


class Tetrad(IntEnum):
    A = 0
    T = 1
    G = 2
    C = 3

    @classmethod
    def random(cls, rng: random.Random | None = None) -> Tetrad:
        return cls((rng or random).randrange(4))

    @classmethod
    def from_char(cls, char: str) -> Tetrad:
        try:
            return cls[char.upper()]
        except KeyError:
            raise ValidationError(f"Unknown symbol {char!r}, expected one of A/T/G/C") from None

    def complement(self) -> Tetrad:
        return _COMPLEMENTS[self]

    def to_char(self) -> str:
        return self.name


_COMPLEMENTS = {
    Tetrad.A: Tetrad.T,
    Tetrad.T: Tetrad.A,
    Tetrad.G: Tetrad.C,
    Tetrad.C: Tetrad.G,
}


def parse_sequence(text: str) -> list[Tetrad]:
    """Decode a textual sequence such as ``"ATGC..."`` into symbols."""
    text = text.strip()
    if len(text) != SEQUENCE_LENGTH:
        raise ValidationError(
            f"Sequence must have {SEQUENCE_LENGTH} symbols, got {len(text)}"
        )
    return [Tetrad.from_char(c) for c in text]


def format_sequence(sequence: list[Tetrad]) -> str:
    return "".join(t.to_char() for t in sequence)
