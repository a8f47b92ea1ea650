from __future__ import annotations

from pydantic import BaseModel, Field


class EvolutionMetrics(BaseModel):
    """Running counters of evolution attempts."""

    evolutions: int = Field(default=0, description="Completed evolution steps")
    improvements: int = Field(
        default=0, description="Steps whose score did not decrease"
    )
    degradations: int = Field(default=0, description="Steps whose score decreased")
    protection_losses: int = Field(
        default=0, description="Steps that cost one protection copy"
    )
    senescence_failures: int = Field(
        default=0, description="Attempts refused for aging reasons"
    )
    protection_failures: int = Field(
        default=0, description="Attempts refused for lack of protection copies"
    )
    recombinations: int = Field(default=0, description="Offspring produced")

    def record_evolution(self, success: bool, protection_lost: bool) -> None:
        self.evolutions += 1
        if success:
            self.improvements += 1
        else:
            self.degradations += 1
        if protection_lost:
            self.protection_losses += 1

    def to_dict(self) -> dict[str, int]:
        return self.model_dump()
