"""Request-handler facing operations over the shared core objects.

One :class:`Kernel` is built at startup and injected wherever entities are
created, edited or evolved. It owns the process-wide rotation engine; no
module keeps rotation counters of its own.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
import random

from loguru import logger

from helixevo.database.entity_storage import EntityStorage
from helixevo.economy.collaborator import EconomicCollaborator
from helixevo.evolution.engine import EvolutionEngine, EvolutionOutcome
from helixevo.exceptions import (
    EntityNotFoundError,
    EvolutionError,
    ProtectionLostError,
    ValidationError,
)
from helixevo.genome.builder import EntityBuilder
from helixevo.genome.entity import Entity
from helixevo.genome.symbols import SEQUENCE_LENGTH, Tetrad
from helixevo.rotation.engine import RotationStats, SharedRotationEngine
from helixevo.runner.config import DaemonConfig
from helixevo.runner.daemon import RotationDaemon

__all__ = ["Kernel"]


class Kernel:
    def __init__(
        self,
        storage: EntityStorage,
        economy: EconomicCollaborator,
        evolution: EvolutionEngine | None = None,
        rotation: SharedRotationEngine | None = None,
        daemon_config: DaemonConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.storage = storage
        self.economy = economy
        self.evolution = evolution or EvolutionEngine()
        self.rotation = rotation or SharedRotationEngine()
        self.daemon_config = daemon_config or DaemonConfig()
        self._rng = rng or random.Random()
        self.daemon: RotationDaemon | None = None

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def create_entity(self, reinforced: bool = False) -> Entity:
        builder = EntityBuilder.random(self._rng)
        entity = (builder.reinforced() if reinforced else builder.standard()).build()
        entity.external_id = await self.storage.put(entity)
        logger.info(
            "[Kernel] Created {} entity {} | score {} | signal {:.2f}",
            "reinforced" if reinforced else "standard",
            entity.external_id,
            entity.score,
            entity.signal_ratio(),
        )
        await self._notify(self.economy.notify_reward(entity.external_id, entity.score))
        return entity

    async def get_entity(self, entity_id: str) -> Entity:
        entity = await self.storage.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        return entity

    async def edit_entity(self, entity_id: str, position: int, symbol: Tetrad | str) -> Entity:
        if not 0 <= position < SEQUENCE_LENGTH:
            raise ValidationError(
                f"Position {position} out of range [0, {SEQUENCE_LENGTH})"
            )
        tetrad = Tetrad.from_char(symbol) if isinstance(symbol, str) else Tetrad(symbol)
        entity = await self.get_entity(entity_id)
        entity.edit_at(position, tetrad)
        await self.storage.put(entity)
        return entity

    async def reset_aging(self, entity_id: str) -> Entity:
        entity = await self.get_entity(entity_id)
        before = entity.aging_budget
        entity.reset_aging()
        await self.storage.put(entity)
        logger.info(
            "[Kernel] Aging reset for {}: {} -> {}",
            entity_id,
            before,
            entity.aging_budget,
        )
        return entity

    async def evolve_entity(self, entity_id: str) -> tuple[Entity, EvolutionOutcome]:
        """Evolve a stored entity and persist the result under a new id.

        Terminal outcomes are reported to the economy and re-raised; the
        entity is not retried.
        """
        entity = await self.get_entity(entity_id)
        snapshot = await self.rotation.snapshot()
        try:
            evolved, outcome = await asyncio.to_thread(self.evolution.evolve, entity, snapshot)
        except EvolutionError as exc:
            reason = "protection_lost" if isinstance(exc, ProtectionLostError) else "senescence"
            await self._notify(self.economy.notify_terminal(entity_id, entity.score, reason))
            raise

        evolved.external_id = await self.storage.put(evolved)
        logger.info(
            "[Kernel] Evolved {} -> {} | score {:+d} | age {:.3f} -> {:.3f}",
            entity_id,
            evolved.external_id,
            outcome.score_delta,
            outcome.biological_age_before,
            outcome.biological_age_after,
        )
        if outcome.success:
            await self._notify(self.economy.notify_reward(evolved.external_id, evolved.score))
        else:
            await self._notify(
                self.economy.notify_degradation(
                    evolved.external_id, outcome.score_before, outcome.score_after
                )
            )
        return evolved, outcome

    async def recombine_entities(self, first_id: str, second_id: str) -> Entity:
        first = await self.get_entity(first_id)
        second = await self.get_entity(second_id)
        offspring = await asyncio.to_thread(self.evolution.recombine, first, second)
        offspring.external_id = await self.storage.put(offspring)
        await self._notify(self.economy.notify_reward(offspring.external_id, offspring.score))
        return offspring

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    async def rotation_stats(self) -> RotationStats:
        return await self.rotation.snapshot()

    async def manual_rotate(self) -> RotationStats:
        await self.rotation.rotate()
        return await self.rotation.snapshot()

    async def check_out(self) -> int:
        return await self.rotation.increment_active()

    async def check_in(self) -> int:
        return await self.rotation.decrement_active()

    # ------------------------------------------------------------------
    # Daemon
    # ------------------------------------------------------------------

    def start_daemon(self) -> RotationDaemon:
        if self.daemon is None:
            self.daemon = RotationDaemon(
                rotation=self.rotation,
                storage=self.storage,
                evolution=self.evolution,
                economy=self.economy,
                config=self.daemon_config,
            )
        self.daemon.start()
        logger.info("[Kernel] Rotation daemon started | interval={}s", self.daemon_config.interval)
        return self.daemon

    async def stop_daemon(self) -> None:
        if self.daemon is not None:
            await self.daemon.stop()

    @staticmethod
    async def _notify(notification: Awaitable[None]) -> None:
        try:
            await notification
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("[Kernel] Economy notification failed: {}", exc)
