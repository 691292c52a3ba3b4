"""Logging configuration using loguru."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from kafka_panel.config import ServerConfig

LOG_ROTATION = "10 MB"
LOG_RETENTION = "7 days"


def _sink_options(config: "ServerConfig") -> dict[str, Any]:
    # Serialized records go to log shippers, never include local variables there
    if config.json_logging:
        return {"level": config.log_level, "serialize": True, "backtrace": True, "diagnose": False}
    return {
        "level": config.log_level,
        "format": config.log_format,
        "backtrace": True,
        "diagnose": config.debug_mode,
    }


def setup_logger(config: "ServerConfig", log_file: Path | None = None) -> None:
    """Replace the default loguru sink with the panel's sinks.

    Writes to stderr and, when ``log_file`` is given, to a rotating file.
    ``json_logging`` switches both sinks to serialized records.

    Args:
        config: Server configuration
        log_file: Optional path to log file
    """
    logger.remove()
    options = _sink_options(config)

    logger.add(sys.stderr, colorize=not config.json_logging, **options)
    if log_file:
        logger.add(
            log_file,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            compression="zip",
            **options,
        )

    logger.info(
        f"Logging at {config.log_level}"
        f"{' as JSON' if config.json_logging else ''}"
        f"{f' to stderr and {log_file}' if log_file else ''}"
    )
