from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import random
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from helixevo.genome.levels import ScoreLevel, classify
from helixevo.genome.symbols import (
    SEQUENCE_LENGTH,
    Tetrad,
    format_sequence,
    parse_sequence,
)
from helixevo.rotation.state import RotationState, suggested_state

AGING_BUDGET_MAX = 15000
DIVISION_LIMIT = 50
SENESCENCE_THRESHOLD = 100
STANDARD_PROTECTION = 20
REINFORCED_PROTECTION = 40

# Uniform aging cost of a single division, upper bound exclusive.
DIVISION_COST_RANGE = (50, 150)


class Entity(BaseModel):
    """A fixed-length symbol sequence with its derived hash and score.

    ``content_hash`` and ``score`` are always derived from the current
    sequence, mutation counter and protection copies; whatever a caller
    passes for them on construction is discarded and recomputed.
    """

    sequence: list[Tetrad] = Field(
        ...,
        min_length=SEQUENCE_LENGTH,
        max_length=SEQUENCE_LENGTH,
        description="Ordered symbols, length is invariant",
    )
    content_hash: str = Field(default="", description="Hex SHA-256 digest")
    score: int = Field(default=0, ge=0, description="Derived basic score")
    mutation_count: int = Field(default=0, ge=0)
    protection_copies: int = Field(default=STANDARD_PROTECTION, ge=0, le=255)
    aging_budget: int = Field(default=AGING_BUDGET_MAX, ge=0, le=AGING_BUDGET_MAX)
    division_count: int = Field(default=0, ge=0, le=DIVISION_LIMIT)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        frozen=True,
    )
    external_id: str | None = Field(
        default=None, description="Handle assigned by the store"
    )
    parent_ids: list[str] = Field(default_factory=list)
    last_operator: str | None = Field(
        default=None, description="Name of the operator that produced this entity"
    )

    model_config = ConfigDict(extra="forbid", validate_default=True)

    @field_validator("sequence", mode="before")
    @classmethod
    def _decode_sequence(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_sequence(v)
        if isinstance(v, (list, tuple)):
            return [Tetrad.from_char(x) if isinstance(x, str) else x for x in v]
        return v

    @field_serializer("sequence", when_used="json")
    def _encode_sequence(self, value: list[Tetrad]) -> str:
        return format_sequence(value)

    @model_validator(mode="after")
    def _derive(self) -> Entity:
        self.refresh()
        return self

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def rehash(self) -> None:
        digest = hashlib.sha256()
        digest.update(bytes(int(t) for t in self.sequence))
        digest.update(self.mutation_count.to_bytes(8, "little"))
        digest.update(self.protection_copies.to_bytes(1, "little"))
        self.content_hash = digest.hexdigest()

    def calculate_score(self) -> int:
        hash_sum = sum(bytes.fromhex(self.content_hash))
        base = (hash_sum % 500) + 500
        gc_bonus = int(self.gc_content() * 100)
        complexity_bonus = int(self.complexity() * 50)
        balance_bonus = int(self.signal_balance() * 100)
        protection_bonus = self.protection_copies * 5
        return base + gc_bonus + complexity_bonus + balance_bonus + protection_bonus

    def rescale(self) -> None:
        self.score = self.calculate_score()

    def refresh(self) -> None:
        """Rehash, then rescale. Required after any structural change."""
        self.rehash()
        self.rescale()

    # ------------------------------------------------------------------
    # Structural edits (out-of-range positions are ignored)
    # ------------------------------------------------------------------

    def edit_at(self, position: int, symbol: Tetrad) -> None:
        if 0 <= position < SEQUENCE_LENGTH:
            self.sequence[position] = Tetrad(symbol)
            self._after_edit()

    def swap(self, pos1: int, pos2: int) -> None:
        if 0 <= pos1 < SEQUENCE_LENGTH and 0 <= pos2 < SEQUENCE_LENGTH:
            seq = self.sequence
            seq[pos1], seq[pos2] = seq[pos2], seq[pos1]
            self._after_edit()

    def randomize_at(self, position: int, rng: random.Random | None = None) -> None:
        if 0 <= position < SEQUENCE_LENGTH:
            self.sequence[position] = Tetrad.random(rng)
            self._after_edit()

    def _after_edit(self) -> None:
        self.mutation_count += 1
        self.refresh()

    # ------------------------------------------------------------------
    # Aging
    # ------------------------------------------------------------------

    def divide(self, rng: random.Random | None = None) -> bool:
        """Spend aging budget on one division; ``False`` when refused."""
        if (
            self.aging_budget < SENESCENCE_THRESHOLD
            or self.division_count >= DIVISION_LIMIT
        ):
            return False
        loss = (rng or random).randrange(*DIVISION_COST_RANGE)
        self.aging_budget = max(0, self.aging_budget - loss)
        self.division_count += 1
        return True

    def reset_aging(self) -> None:
        self.aging_budget = AGING_BUDGET_MAX
        self.division_count = 0

    @property
    def is_senescent(self) -> bool:
        return self.aging_budget < SENESCENCE_THRESHOLD

    def biological_age(self) -> float:
        return 1.0 - self.aging_budget / AGING_BUDGET_MAX

    # ------------------------------------------------------------------
    # Sequence metrics
    # ------------------------------------------------------------------

    def gc_content(self) -> float:
        gc = sum(1 for t in self.sequence if t in (Tetrad.G, Tetrad.C))
        return gc / SEQUENCE_LENGTH

    def complexity(self) -> float:
        transitions = sum(
            1
            for prev, cur in zip(self.sequence, self.sequence[1:])
            if prev != cur
        )
        return transitions / (SEQUENCE_LENGTH - 1)

    def signal_counts(self) -> tuple[int, int]:
        """Counts of the two signal symbols, (T, G)."""
        return self.sequence.count(Tetrad.T), self.sequence.count(Tetrad.G)

    def signal_ratio(self) -> float:
        t, g = self.signal_counts()
        return float("inf") if g == 0 else t / g

    def signal_balance(self) -> float:
        t, g = self.signal_counts()
        total = t + g
        if total == 0:
            return 0.5
        return 1.0 - abs(t / total - 0.5) * 2.0

    def symbol_balance(self) -> float:
        """How evenly all four symbols are represented (1.0 = perfectly even)."""
        ideal = SEQUENCE_LENGTH / 4
        deviation = sum(abs(self.sequence.count(t) - ideal) for t in Tetrad)
        return 1.0 - deviation / (SEQUENCE_LENGTH * 2)

    def suggested_state(self) -> RotationState:
        return suggested_state(self.signal_ratio())

    @property
    def level(self) -> ScoreLevel:
        return classify(self.score)

    @property
    def sequence_text(self) -> str:
        return format_sequence(self.sequence)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entity:
        return cls(**data)

    def clone(self) -> Entity:
        return self.model_copy(deep=True)

    def __str__(self) -> str:
        ident = self.external_id[:8] if self.external_id else "unsaved"
        return (
            f"Entity({ident} {self.sequence_text} score={self.score} "
            f"level={self.level.value})"
        )
