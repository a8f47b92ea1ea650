"""Periodic rotation daemon.

Every tick optionally lets the leading entity's signal force a rotation,
performs the scheduled rotation, then runs the work of the phase it landed
on. The rotation lock is only ever held inside :class:`SharedRotationEngine`
calls, never across storage, economy or evolution work.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
import contextlib
from datetime import datetime, timezone
import random
from typing import Callable

from loguru import logger

from helixevo.database.entity_storage import EntityStorage
from helixevo.economy.collaborator import EconomicCollaborator
from helixevo.evolution.engine import EvolutionEngine
from helixevo.exceptions import EvolutionError, StorageError
from helixevo.rotation.engine import SharedRotationEngine
from helixevo.rotation.state import RotationState
from helixevo.runner.config import DaemonConfig
from helixevo.runner.events import DegradationEvent, ForcedRotation, TickReport
from helixevo.runner.metrics import DaemonMetrics

__all__ = ["RotationDaemon"]


class RotationDaemon:
    """Drive a :class:`SharedRotationEngine` on a fixed period."""

    def __init__(
        self,
        rotation: SharedRotationEngine,
        storage: EntityStorage,
        evolution: EvolutionEngine,
        economy: EconomicCollaborator,
        config: DaemonConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.rotation = rotation
        self.storage = storage
        self.evolution = evolution
        self.economy = economy
        self.config = config or DaemonConfig()
        self._rng = rng or random.Random(self.config.seed)

        self.metrics = DaemonMetrics()
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._running = False

        self._handlers: dict[RotationState, Callable[[TickReport], Awaitable[None]]] = {
            RotationState.ACTIVE: self._handle_active,
            RotationState.BALANCE: self._handle_balance,
            RotationState.STORAGE: self._handle_storage,
            RotationState.MUTATION: self._handle_mutation,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self) -> None:
        """Launch :meth:`run` in the background (idempotent)."""
        if self._task is None or self._task.done():
            self._stop_event = asyncio.Event()
            self._task = asyncio.create_task(self.run(), name="rotation-daemon")

    async def stop(self) -> None:
        """Request shutdown and wait for the current tick to finish."""
        self._stop_event.set()
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    def is_running(self) -> bool:
        return self._running

    async def run(self) -> None:
        logger.info(
            "[RotationDaemon] Start | interval={}s, signal_influence={}",
            self.config.interval,
            self.config.signal_influence,
        )
        self._running = True
        try:
            while not self._stop_event.is_set():
                if self._reached_tick_cap():
                    logger.info("[RotationDaemon] Stop: max_ticks={}", self.config.max_ticks)
                    break

                try:
                    await asyncio.wait_for(self.tick(), timeout=self.config.tick_timeout)
                except asyncio.TimeoutError:
                    self._on_error("Tick timeout")
                except Exception as exc:  # pylint: disable=broad-except
                    logger.exception("[RotationDaemon] Tick failed: {}", exc)
                    self._on_error(str(exc))

                if self.metrics.ticks % self.config.log_interval == 0:
                    self._log_metrics()

                # Sleep until the next tick, waking early on stop().
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self.config.interval
                    )
        finally:
            self._running = False
            logger.info("[RotationDaemon] Stopped")

    # ------------------------------------------------------------------
    # One tick
    # ------------------------------------------------------------------

    async def tick(self) -> TickReport:
        forced = None
        if self.config.signal_influence:
            forced = await self._apply_signal_influence()

        previous, current = await self.rotation.rotate()
        logger.info("[RotationDaemon] Rotation {} -> {}", previous.label, current.label)

        report = TickReport(previous_state=previous, state=current, forced=forced)
        await self._handlers[current](report)

        self.metrics.ticks += 1
        self.metrics.last_tick_time = datetime.now(timezone.utc)
        return report

    async def _apply_signal_influence(self) -> ForcedRotation | None:
        try:
            top = await self.storage.top_n(1)
        except StorageError as exc:
            self._on_storage_error("signal influence", exc)
            return None
        if not top:
            return None

        leader = top[0]
        suggested = leader.suggested_state()
        probability = min(
            leader.score / self.config.forced_rotation_score_scale,
            self.config.max_forced_rotation_probability,
        )
        if self._rng.random() >= probability:
            return None

        previous, steps = await self.rotation.rotate_to(suggested)
        if steps == 0:
            return None

        signal = leader.signal_ratio()
        logger.info(
            "[RotationDaemon] Signal {:.2f} from leader {} forced {} -> {}",
            signal,
            leader.external_id,
            previous.label,
            suggested.label,
        )
        self.metrics.forced_rotations += 1
        return ForcedRotation(
            entity_id=leader.external_id,
            signal_ratio=signal,
            probability=probability,
            from_state=previous,
            to_state=suggested,
            steps=steps,
        )

    # ------------------------------------------------------------------
    # Phase handlers
    # ------------------------------------------------------------------

    async def _handle_active(self, report: TickReport) -> None:
        report.active_entities = await self.rotation.increment_active()
        logger.info("[RotationDaemon] Active entities: {}", report.active_entities)

    async def _handle_balance(self, report: TickReport) -> None:
        try:
            stats = await self.economy.stats()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("[RotationDaemon] Economy stats unavailable: {}", exc)
            report.skipped_reason = f"economy stats failed: {exc}"
            return
        logger.info(
            "[RotationDaemon] Economy | events={} degradations={} rewards={}",
            stats.total_events,
            stats.degradations,
            stats.rewards,
        )

    async def _handle_storage(self, report: TickReport) -> None:
        try:
            top = await self.storage.top_n(self.config.storage_sync_top_n)
        except StorageError as exc:
            self._on_storage_error("storage sync", exc)
            report.skipped_reason = f"storage sync failed: {exc}"
            return

        report.synced = len(top)
        logger.info("[RotationDaemon] Synced {} top entities", len(top))
        for entity in top[: self.config.storage_sync_log_top]:
            logger.info(
                "[RotationDaemon]    {}: score {} | signal {:.2f}",
                entity.external_id,
                entity.score,
                entity.signal_ratio(),
            )

    async def _handle_mutation(self, report: TickReport) -> None:
        try:
            picked = await self.storage.random_n(1)
        except StorageError as exc:
            self._on_storage_error("entity fetch", exc)
            report.skipped_reason = f"entity fetch failed: {exc}"
            return
        if not picked:
            report.skipped_reason = "no entities stored"
            logger.debug("[RotationDaemon] Mutation skipped: empty store")
            return

        entity = picked[0]
        snapshot = await self.rotation.snapshot()
        try:
            evolved, outcome = await asyncio.to_thread(
                self.evolution.evolve, entity, snapshot
            )
        except EvolutionError as exc:
            self.metrics.evolution_failures += 1
            report.evolution_error = str(exc)
            logger.warning("[RotationDaemon] Evolution of {} failed: {}", entity.external_id, exc)
            return
        report.evolution = outcome

        try:
            stored_id = await self.storage.put(evolved)
        except StorageError as exc:
            self._on_storage_error("persist evolved entity", exc)
            report.skipped_reason = f"persist failed: {exc}"
            return
        report.stored_id = stored_id
        self.metrics.evolutions += 1
        logger.info(
            "[RotationDaemon] Evolution {} -> {} ({:+d}) | {} | id={}",
            outcome.score_before,
            outcome.score_after,
            outcome.score_delta,
            outcome.operator.value,
            stored_id,
        )

        if not outcome.success:
            self.metrics.degradations += 1
            event = DegradationEvent(
                entity_id=stored_id,
                score_before=outcome.score_before,
                score_after=outcome.score_after,
            )
            event.notified = await self._notify(
                "degradation",
                self.economy.notify_degradation(
                    stored_id, outcome.score_before, outcome.score_after
                ),
            )
            report.degradation = event

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _notify(self, what: str, notification: Awaitable[None]) -> bool:
        try:
            await notification
            return True
        except Exception as exc:  # pylint: disable=broad-except
            self.metrics.notification_errors += 1
            logger.warning("[RotationDaemon] Economy {} notification failed: {}", what, exc)
            return False

    def _reached_tick_cap(self) -> bool:
        cap = self.config.max_ticks
        return cap is not None and self.metrics.ticks >= cap

    def _on_storage_error(self, action: str, exc: Exception) -> None:
        self.metrics.storage_errors += 1
        logger.warning("[RotationDaemon] Skip {}: {}", action, exc)

    def _on_error(self, msg: str) -> None:
        self.metrics.errors_encountered += 1
        logger.error("[RotationDaemon] Error #{}: {}", self.metrics.errors_encountered, msg)

    def _log_metrics(self) -> None:
        m = self.metrics.to_dict()
        logger.info("[RotationDaemon] | " + " | ".join(f"{k}={v}" for k, v in m.items()))

    async def get_status(self) -> dict[str, object]:
        """Light, non-blocking status for UIs/health checks."""
        snapshot = await self.rotation.snapshot()
        return {
            "running": self._running,
            "rotation": snapshot.to_dict(),
            **self.metrics.to_dict(),
        }
