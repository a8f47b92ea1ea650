"""Loguru setup shared by the daemon entrypoint and ad-hoc scripts."""

from datetime import datetime, timezone
import os
import sys

from loguru import logger

_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)


def setup_logger(
    log_dir: str | None = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
) -> str | None:
    """
    Route loguru output to the console and, optionally, a rotating file.

    Args:
        log_dir: Directory for the daemon log; ``None`` keeps console only
        level: Minimum level for both sinks
        rotation: File rotation policy (e.g., "50 MB", "1 day")
        retention: How long rotated files are kept
        enable_colors: Colorize console output when attached to a TTY

    Returns:
        Path to the log file, or ``None`` when no file sink was added
    """
    logger.remove()

    colorize = enable_colors and sys.stderr.isatty()
    if colorize:
        console_format = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<yellow>{line}</yellow> | "
            "<level>{message}</level>"
        )
    else:
        console_format = "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"

    logger.add(sys.stderr, level=level, format=console_format, colorize=colorize)

    if log_dir is None:
        logger.debug("Logger initialized | level={} | console only", level)
        return None

    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"helixevo_{timestamp}.log")

    logger.add(
        log_file,
        level=level,
        format=_FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=False,
    )
    logger.info("Logger initialized | level={} | file={}", level, log_file)
    return log_file
