from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DaemonConfig(BaseModel):
    """Configuration options controlling RotationDaemon behaviour."""

    interval: float = Field(default=30.0, gt=0, description="Seconds between ticks")
    signal_influence: bool = Field(
        default=True,
        description="Let the top-scoring entity's signal force a rotation",
    )
    max_forced_rotation_probability: float = Field(default=0.7, ge=0.0, le=1.0)
    forced_rotation_score_scale: float = Field(
        default=1000.0,
        gt=0,
        description="Score at which the forced-rotation probability would reach 1",
    )
    storage_sync_top_n: int = Field(default=10, gt=0)
    storage_sync_log_top: int = Field(default=3, ge=0)
    tick_timeout: float = Field(default=600.0, gt=0)
    log_interval: int = Field(default=1, gt=0, description="Log metrics every N ticks")
    max_ticks: int | None = Field(
        default=None,
        gt=0,
        description="Stop after this many ticks (None = run until stopped)",
    )
    seed: int | None = Field(default=None, description="Seed for the daemon's RNG")
    model_config = ConfigDict(extra="forbid")
