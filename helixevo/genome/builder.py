from __future__ import annotations

import random
from typing import Any

from helixevo.exceptions import ValidationError
from helixevo.genome.entity import (
    AGING_BUDGET_MAX,
    REINFORCED_PROTECTION,
    STANDARD_PROTECTION,
    Entity,
)
from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad, parse_sequence


class EntityBuilder:
    """Fluent constructor for :class:`Entity`.

    Example::

        entity = EntityBuilder.from_sequence("ATGC" * 6 + "ATG").reinforced().build()
    """

    def __init__(self, sequence: list[Tetrad] | None = None) -> None:
        self._sequence = list(sequence) if sequence is not None else [Tetrad.A] * SEQUENCE_LENGTH
        self._protection_copies = STANDARD_PROTECTION
        self._aging_budget = AGING_BUDGET_MAX

    @classmethod
    def random(cls, rng: random.Random | None = None) -> EntityBuilder:
        return cls([Tetrad.random(rng) for _ in range(SEQUENCE_LENGTH)])

    @classmethod
    def from_sequence(cls, text: str) -> EntityBuilder:
        return cls(parse_sequence(text))

    @staticmethod
    def entity_from_fields(fields: dict[str, Any]) -> Entity:
        """Rebuild an entity from stored fields; derived values are recomputed."""
        return Entity.from_dict(fields)

    def protection_copies(self, copies: int) -> EntityBuilder:
        self._protection_copies = copies
        return self

    def aging_budget(self, budget: int) -> EntityBuilder:
        self._aging_budget = budget
        return self

    def reinforced(self) -> EntityBuilder:
        return self.protection_copies(REINFORCED_PROTECTION)

    def standard(self) -> EntityBuilder:
        return self.protection_copies(STANDARD_PROTECTION)

    def build(self) -> Entity:
        if len(self._sequence) != SEQUENCE_LENGTH:
            raise ValidationError(
                f"Sequence must have {SEQUENCE_LENGTH} symbols, got {len(self._sequence)}"
            )
        return Entity(
            sequence=list(self._sequence),
            protection_copies=self._protection_copies,
            aging_budget=self._aging_budget,
        )


def build(
    sequence: list[Tetrad] | str,
    protection_copies: int = STANDARD_PROTECTION,
    aging_budget: int = AGING_BUDGET_MAX,
) -> Entity:
    if isinstance(sequence, str):
        builder = EntityBuilder.from_sequence(sequence)
    else:
        builder = EntityBuilder(list(sequence))
    return builder.protection_copies(protection_copies).aging_budget(aging_budget).build()
