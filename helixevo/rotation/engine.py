from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from helixevo.rotation.state import DEFAULT_STATE, RotationState, steps_between

__all__ = ["RotationEngine", "RotationStats", "SharedRotationEngine"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RotationStats(BaseModel):
    """Read-only snapshot of a :class:`RotationEngine`."""

    current: RotationState
    total_rotations: int
    rotations_per_state: dict[RotationState, int]
    active_entities: int
    last_rotation_at: datetime

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")


class RotationEngine(BaseModel):
    """Four-state cyclic rotation with visit counters. Runs indefinitely."""

    current: RotationState = Field(default=DEFAULT_STATE)
    total_rotations: int = Field(default=0, ge=0)
    rotations_per_state: dict[RotationState, int] = Field(
        default_factory=lambda: {state: 0 for state in RotationState}
    )
    active_entities: int = Field(
        default=0, ge=0, description="Entities currently checked out"
    )
    last_rotation_at: datetime = Field(default_factory=_now)

    @field_validator("rotations_per_state")
    @classmethod
    def _fill_missing_states(cls, v: dict[RotationState, int]) -> dict[RotationState, int]:
        return {state: v.get(state, 0) for state in RotationState}

    def rotate(self) -> RotationState:
        self.current = self.current.next()
        self.total_rotations += 1
        self.rotations_per_state[self.current] += 1
        self.last_rotation_at = _now()
        return self.current

    def rotate_to(self, target: RotationState) -> int:
        """Rotate forward until *target* is current; returns the steps taken (0-3)."""
        steps = steps_between(self.current, target)
        for _ in range(steps):
            self.rotate()
        return steps

    def increment_active(self) -> int:
        self.active_entities += 1
        return self.active_entities

    def decrement_active(self) -> int:
        self.active_entities = max(0, self.active_entities - 1)
        return self.active_entities

    def stats(self) -> RotationStats:
        return RotationStats(
            current=self.current,
            total_rotations=self.total_rotations,
            rotations_per_state=dict(self.rotations_per_state),
            active_entities=self.active_entities,
            last_rotation_at=self.last_rotation_at,
        )


class SharedRotationEngine:
    """The single process-wide :class:`RotationEngine` and the lock guarding it.

    Every critical section is synchronous, so the lock is never held across an
    ``await`` on storage, the economy or an evolution step. Callers that need
    the engine's state during slow work take a :meth:`snapshot` first.
    """

    def __init__(self, engine: RotationEngine | None = None) -> None:
        self._engine = engine or RotationEngine()
        self._lock = asyncio.Lock()

    async def snapshot(self) -> RotationStats:
        async with self._lock:
            return self._engine.stats()

    async def current(self) -> RotationState:
        async with self._lock:
            return self._engine.current

    async def rotate(self) -> tuple[RotationState, RotationState]:
        async with self._lock:
            previous = self._engine.current
            current = self._engine.rotate()
        logger.debug("[RotationEngine] {} -> {}", previous.label, current.label)
        return previous, current

    async def rotate_to(self, target: RotationState) -> tuple[RotationState, int]:
        """Rotate forward to *target*; returns the starting state and steps taken."""
        async with self._lock:
            previous = self._engine.current
            steps = self._engine.rotate_to(target)
        return previous, steps

    async def increment_active(self) -> int:
        async with self._lock:
            return self._engine.increment_active()

    async def decrement_active(self) -> int:
        async with self._lock:
            return self._engine.decrement_active()
