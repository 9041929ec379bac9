"""Logging configuration using Loguru."""

import sys

from loguru import logger

from src.utils.config import LoggingConfig, get_project_root, settings


def setup_logging(config: LoggingConfig = None) -> None:
    config = config or settings.logging
    logger.remove()

    # Console
    logger.add(
        sys.stderr,
        format=config.format,
        level=config.level,
        colorize=True,
    )

    if config.log_to_file:
        log_dir = get_project_root() / "logs"
        log_dir.mkdir(exist_ok=True)

        # File
        logger.add(
            log_dir / "agro_climate.log",
            format=config.format,
            level=config.level,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
        )

        # Errors only
        logger.add(
            log_dir / "errors.log",
            format=config.format,
            level="ERROR",
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
        )

    logger.info(f"Logging initialized - Level: {config.level}")
