from __future__ import annotations

from pydantic import BaseModel, Field

from helixevo.evolution.engine.core import EvolutionOutcome
from helixevo.rotation.state import RotationState


class ForcedRotation(BaseModel):
    """The leading entity's signal pulled the engine to its suggested state."""

    entity_id: str | None
    signal_ratio: float
    probability: float
    from_state: RotationState
    to_state: RotationState
    steps: int = Field(ge=0, le=3)


class DegradationEvent(BaseModel):
    """An evolution step lowered the score; reported to the economy."""

    entity_id: str
    score_before: int
    score_after: int
    notified: bool = Field(
        default=False, description="Whether the economy accepted the notification"
    )


class TickReport(BaseModel):
    """Everything a single daemon tick did, for callers and tests."""

    previous_state: RotationState
    state: RotationState
    forced: ForcedRotation | None = None
    active_entities: int | None = None
    synced: int = 0
    evolution: EvolutionOutcome | None = None
    evolution_error: str | None = None
    stored_id: str | None = None
    degradation: DegradationEvent | None = None
    skipped_reason: str | None = None
