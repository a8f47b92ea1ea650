import asyncio
from datetime import datetime, timezone
import random
import time

import hydra
from hydra.utils import instantiate
from loguru import logger
from omegaconf import DictConfig

from helixevo.database.memory_entity_storage import MemoryEntityStorage
from helixevo.economy.collaborator import RecordingEconomy
from helixevo.evolution.engine import EvolutionConfig, EvolutionEngine
from helixevo.kernel import Kernel
from helixevo.runner.config import DaemonConfig
from helixevo.utils.logger_setup import setup_logger
from helixevo.utils.serve import serve_until_signal


async def run_population(cfg: DictConfig) -> None:
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("HelixEvo rotation daemon")
    logger.info("=" * 80)
    logger.info("Start time: {}", datetime.now(timezone.utc).isoformat())

    storage = MemoryEntityStorage(rng=random.Random(cfg.population.seed))
    economy = RecordingEconomy()
    kernel: Kernel | None = None
    try:
        logger.info("Step 1/3: Initializing components...")
        evolution_config: EvolutionConfig = instantiate(cfg.evolution)
        daemon_config: DaemonConfig = instantiate(cfg.daemon)
        kernel = Kernel(
            storage=storage,
            economy=economy,
            evolution=EvolutionEngine(evolution_config),
            daemon_config=daemon_config,
            rng=random.Random(cfg.population.seed),
        )

        logger.info("Step 2/3: Seeding {} entities...", cfg.population.size)
        reinforced = round(cfg.population.size * cfg.population.reinforced_fraction)
        for i in range(cfg.population.size):
            await kernel.create_entity(reinforced=i < reinforced)
        leader = (await storage.top_n(1))[0]
        logger.info(
            "Step 2/3: Leader {} | score {} | {}",
            leader.external_id,
            leader.score,
            leader.level.value,
        )

        logger.info("Step 3/3: Running until completion or signal...")
        daemon = kernel.start_daemon()
        await serve_until_signal(stop=kernel.stop_daemon, watch=(daemon.task,))
    except Exception as e:  # pylint: disable=broad-except
        logger.error("Run failed: {}", e)
        raise
    finally:
        if kernel is not None:
            await kernel.stop_daemon()
        stats = await economy.stats()
        logger.info(
            "Economy | events={} rewards={} degradations={} terminal={}",
            stats.total_events,
            stats.rewards,
            stats.degradations,
            stats.terminal_events,
        )
        await storage.close()
        duration = time.time() - start_time
        logger.info("Total duration: {:.2f} seconds", duration)
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info(
        "Working directory: {}",
        hydra.core.hydra_config.HydraConfig.get().runtime.output_dir,
    )
    logger.info("Log file: {}", log_file_path)
    asyncio.run(run_population(cfg))


if __name__ == "__main__":
    main()
