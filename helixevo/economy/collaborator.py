from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from datetime import datetime, timezone
from enum import Enum

from loguru import logger
from pydantic import BaseModel, Field

from helixevo.exceptions import EconomyError

__all__ = [
    "EconomicCollaborator",
    "EconomicEvent",
    "EconomicEventKind",
    "EconomyStats",
    "RecordingEconomy",
]


class EconomicEventKind(str, Enum):
    DEGRADATION = "degradation"
    REWARD = "reward"
    TERMINAL = "terminal"


class EconomicEvent(BaseModel):
    kind: EconomicEventKind
    entity_id: str
    score_before: int
    score_after: int
    reason: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EconomyStats(BaseModel):
    """Aggregate counters read during the Balance phase."""

    total_events: int = 0
    degradations: int = 0
    rewards: int = 0
    terminal_events: int = 0
    score_lost: int = Field(default=0, description="Sum of score drops reported")


class EconomicCollaborator(ABC):
    """Receives score events from the core.

    Notifications are fire-and-forget from the caller's point of view: the
    daemon logs failures and carries on.
    """

    @abstractmethod
    async def notify_degradation(
        self, entity_id: str, score_before: int, score_after: int
    ) -> None: ...

    @abstractmethod
    async def notify_reward(self, entity_id: str, score: int) -> None: ...

    @abstractmethod
    async def notify_terminal(self, entity_id: str, score: int, reason: str) -> None:
        """An evolution attempt ended in senescence or protection loss."""

    @abstractmethod
    async def stats(self) -> EconomyStats: ...


class RecordingEconomy(EconomicCollaborator):
    """In-memory collaborator that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[EconomicEvent] = []
        self._stats = EconomyStats()
        self._lock = asyncio.Lock()
        # Flip to make every notification fail (test aid).
        self.failing = False

    async def _record(self, event: EconomicEvent) -> None:
        async with self._lock:
            if self.failing:
                raise EconomyError(f"Economy rejected {event.kind.value} event")
            self.events.append(event)
            self._stats.total_events += 1
            if event.kind is EconomicEventKind.DEGRADATION:
                self._stats.degradations += 1
                self._stats.score_lost += max(0, event.score_before - event.score_after)
            elif event.kind is EconomicEventKind.REWARD:
                self._stats.rewards += 1
            else:
                self._stats.terminal_events += 1
        logger.debug(
            "[RecordingEconomy] {} id={} {} -> {}",
            event.kind.value,
            event.entity_id,
            event.score_before,
            event.score_after,
        )

    async def notify_degradation(
        self, entity_id: str, score_before: int, score_after: int
    ) -> None:
        await self._record(
            EconomicEvent(
                kind=EconomicEventKind.DEGRADATION,
                entity_id=entity_id,
                score_before=score_before,
                score_after=score_after,
            )
        )

    async def notify_reward(self, entity_id: str, score: int) -> None:
        await self._record(
            EconomicEvent(
                kind=EconomicEventKind.REWARD,
                entity_id=entity_id,
                score_before=score,
                score_after=score,
            )
        )

    async def notify_terminal(self, entity_id: str, score: int, reason: str) -> None:
        await self._record(
            EconomicEvent(
                kind=EconomicEventKind.TERMINAL,
                entity_id=entity_id,
                score_before=score,
                score_after=0,
                reason=reason,
            )
        )

    async def stats(self) -> EconomyStats:
        async with self._lock:
            return self._stats.model_copy()

    def events_of(self, kind: EconomicEventKind) -> list[EconomicEvent]:
        return [e for e in self.events if e.kind is kind]
