"""
Tests for RotationDaemon ticks and lifecycle.
"""

import asyncio
import random
import threading
import time

from helixevo.evolution.engine import EvolutionEngine, EvolutionOutcome
from helixevo.evolution.operators import MutationKind
from helixevo.genome.builder import build
from helixevo.rotation.engine import SharedRotationEngine
from helixevo.rotation.state import RotationState
from helixevo.runner.config import DaemonConfig
from helixevo.runner.daemon import RotationDaemon


class DegradingEvolution:
    """Evolution stand-in whose every step lowers the score by 10."""

    def evolve(self, entity, snapshot=None):
        evolved = entity.clone()
        evolved.external_id = None
        outcome = EvolutionOutcome(
            score_before=entity.score,
            score_after=entity.score - 10,
            mutation_count=entity.mutation_count + 1,
            operator=MutationKind.POINT_EDIT,
            success=False,
            aging_lost=0,
            protection_lost=False,
            signal_ratio_before=1.0,
            signal_ratio_after=1.0,
            biological_age_before=entity.biological_age(),
            biological_age_after=entity.biological_age(),
            rotation_state=snapshot.current if snapshot else None,
        )
        return evolved, outcome


class SlowEvolution(DegradingEvolution):
    """Blocks its worker thread for a while, signalling once it has started."""

    def __init__(self, delay=0.5):
        self.delay = delay
        self.started = threading.Event()

    def evolve(self, entity, snapshot=None):
        self.started.set()
        time.sleep(self.delay)
        return super().evolve(entity, snapshot)


def _daemon(storage, economy, evolution=None, **config):
    config.setdefault("signal_influence", False)
    return RotationDaemon(
        rotation=SharedRotationEngine(),
        storage=storage,
        evolution=evolution or EvolutionEngine(rng=random.Random(0)),
        economy=economy,
        config=DaemonConfig(**config),
        rng=random.Random(0),
    )


class TestPhaseDispatch:
    """Without signal influence, ticks walk the cycle from Storage."""

    def test_full_cycle(self, storage, economy, mixed):
        async def scenario():
            await storage.put(mixed)
            daemon = _daemon(storage, economy)
            reports = [await daemon.tick() for _ in range(4)]
            return daemon, reports, await storage.count()

        daemon, reports, count = asyncio.run(scenario())
        assert [r.state for r in reports] == [
            RotationState.MUTATION,
            RotationState.ACTIVE,
            RotationState.BALANCE,
            RotationState.STORAGE,
        ]
        assert reports[0].evolution is not None
        assert reports[0].stored_id is not None
        assert count == 2
        assert reports[1].active_entities == 1
        assert reports[2].skipped_reason is None
        assert reports[3].synced == 2
        assert daemon.metrics.ticks == 4
        assert daemon.metrics.evolutions == 1

    def test_mutation_on_empty_store(self, storage, economy):
        report = asyncio.run(_daemon(storage, economy).tick())
        assert report.state is RotationState.MUTATION
        assert report.skipped_reason == "no entities stored"
        assert report.evolution is None


class TestMutationPhase:
    def test_degradation_notifies_economy(self, storage, economy, mixed):
        async def scenario():
            await storage.put(mixed)
            daemon = _daemon(storage, economy, evolution=DegradingEvolution())
            return daemon, await daemon.tick()

        daemon, report = asyncio.run(scenario())
        assert report.degradation is not None
        assert report.degradation.notified
        assert report.degradation.score_before - report.degradation.score_after == 10
        events = economy.events
        assert len(events) == 1
        assert events[0].entity_id == report.stored_id
        assert daemon.metrics.degradations == 1

    def test_status_reads_during_slow_evolution(self, storage, economy, mixed):
        """Neither the rotation lock nor the store lock is held while evolving."""
        evolution = SlowEvolution()

        async def scenario():
            await storage.put(mixed)
            daemon = _daemon(storage, economy, evolution=evolution)
            tick = asyncio.create_task(daemon.tick())
            while not evolution.started.is_set():
                await asyncio.sleep(0.005)
            start = time.perf_counter()
            snapshot = await daemon.rotation.snapshot()
            count = await storage.count()
            elapsed = time.perf_counter() - start
            report = await tick
            return snapshot, count, elapsed, report

        snapshot, count, elapsed, report = asyncio.run(scenario())
        assert elapsed < 0.1
        assert snapshot.current is RotationState.MUTATION
        assert count == 1
        assert report.stored_id is not None

    def test_failed_notification_is_recorded(self, storage, economy, mixed):
        economy.failing = True

        async def scenario():
            await storage.put(mixed)
            daemon = _daemon(storage, economy, evolution=DegradingEvolution())
            return daemon, await daemon.tick()

        daemon, report = asyncio.run(scenario())
        assert report.degradation is not None
        assert not report.degradation.notified
        assert daemon.metrics.notification_errors == 1

    def test_protection_lost_is_not_persisted(self, storage, economy):
        async def scenario():
            await storage.put(build("A" * 27, protection_copies=0))
            daemon = _daemon(storage, economy)
            return daemon, await daemon.tick(), await storage.count()

        daemon, report, count = asyncio.run(scenario())
        assert report.evolution_error is not None
        assert report.stored_id is None
        assert count == 1
        assert daemon.metrics.evolution_failures == 1

    def test_store_unavailable_skips_action(self, storage, economy):
        storage.unavailable = True
        daemon = _daemon(storage, economy)
        report = asyncio.run(daemon.tick())
        assert report.state is RotationState.MUTATION
        assert report.skipped_reason is not None
        assert daemon.metrics.storage_errors == 1
        assert daemon.metrics.ticks == 1


class TestSignalInfluence:
    def test_leader_forces_rotation(self, storage, economy, all_a):
        """All-A has no G, so its ratio is infinite and it argues for Active."""

        async def scenario():
            await storage.put(all_a)
            daemon = _daemon(
                storage,
                economy,
                signal_influence=True,
                forced_rotation_score_scale=1.0,
                max_forced_rotation_probability=1.0,
            )
            report = await daemon.tick()
            return daemon, report, await daemon.rotation.snapshot()

        daemon, report, snapshot = asyncio.run(scenario())
        assert report.forced is not None
        assert report.forced.from_state is RotationState.STORAGE
        assert report.forced.to_state is RotationState.ACTIVE
        assert report.forced.steps == 2
        assert report.state is RotationState.BALANCE
        assert snapshot.total_rotations == 3
        assert daemon.metrics.forced_rotations == 1

    def test_zero_probability_never_forces(self, storage, economy, all_a):
        async def scenario():
            await storage.put(all_a)
            daemon = _daemon(
                storage, economy, signal_influence=True, max_forced_rotation_probability=0.0
            )
            return await daemon.tick()

        report = asyncio.run(scenario())
        assert report.forced is None
        assert report.state is RotationState.MUTATION


class TestLifecycle:
    def test_max_ticks(self, storage, economy):
        daemon = _daemon(storage, economy, interval=0.01, max_ticks=3)
        asyncio.run(daemon.run())
        assert daemon.metrics.ticks == 3
        assert not daemon.is_running()

    def test_stop_between_ticks(self, storage, economy):
        async def scenario():
            daemon = _daemon(storage, economy, interval=60.0)
            daemon.start()
            for _ in range(200):
                if daemon.metrics.ticks:
                    break
                await asyncio.sleep(0.01)
            await asyncio.wait_for(daemon.stop(), timeout=2.0)
            return daemon

        daemon = asyncio.run(scenario())
        assert daemon.metrics.ticks == 1
        assert not daemon.is_running()
        assert daemon.task is None

    def test_status(self, storage, economy):
        async def scenario():
            daemon = _daemon(storage, economy)
            await daemon.tick()
            return await daemon.get_status()

        status = asyncio.run(scenario())
        assert status["running"] is False
        assert status["ticks"] == 1
        assert status["rotation"]["current"] == "mutation"
