from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DaemonMetrics(BaseModel):
    """Counters kept by the rotation daemon."""

    ticks: int = Field(default=0, description="Completed ticks")
    forced_rotations: int = Field(
        default=0, description="Ticks where the leader's signal forced a rotation"
    )
    evolutions: int = Field(default=0, description="Evolved entities persisted")
    evolution_failures: int = Field(
        default=0, description="Evolution attempts ending in a terminal outcome"
    )
    degradations: int = Field(default=0, description="Degradation events raised")
    notification_errors: int = Field(
        default=0, description="Economy notifications that failed"
    )
    storage_errors: int = Field(default=0, description="Phase actions skipped on store errors")
    errors_encountered: int = Field(
        default=0, description="Unexpected errors caught at tick level"
    )
    last_tick_time: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")
