"""
Logging setup for the tracking service (loguru).
"""

import sys
from pathlib import Path
from loguru import logger

from delivery_cdk.config import DeliveryConfig


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(config: DeliveryConfig, console: bool = True) -> None:
    """
    Route service logs to stdout and, when LOG_FILE is set, a rotating file.

    Args:
        config: Service configuration (log_level, log_file)
        console: Whether to log to stdout
    """
    logger.remove()

    if console:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=config.log_level, colorize=True)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            format=FILE_FORMAT,
            level=config.log_level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )

    logger.info(
        f"Logging initialized - Level: {config.log_level}"
        + (f", File: {config.log_file}" if config.log_file else "")
    )
