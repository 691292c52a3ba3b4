"""Kafka control panel entry point.

This module provides the command line for running the HTTP API server.
"""

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import typer
import uvicorn
from loguru import logger

from kafka_panel.api import create_app
from kafka_panel.config import Config
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.utils.errors import KafkaPanelError
from kafka_panel.utils.logger import setup_logger
from kafka_panel.version import __version__

if TYPE_CHECKING:
    from loguru import Logger


app = typer.Typer(
    name="kafka-panel",
    help="Kafka control panel server",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"kafka-panel {__version__}")
        raise typer.Exit()


async def _check_cluster(config: Config) -> None:
    connection = ConnectionManager(config.kafka)
    try:
        info = await connection.connect(config.kafka.bootstrap_servers or "")
        overview = await MetadataAggregator(connection, config.sampling).get_cluster_overview()
    finally:
        await connection.disconnect()

    typer.echo(f"Kafka cluster: {overview.status.value}")
    typer.echo(f"  Cluster ID: {info.cluster_id}")
    typer.echo(f"  Brokers: {overview.brokers_online}/{overview.brokers_total}")
    typer.echo(f"  Topics: {overview.topics_count}")
    typer.echo(f"  Partitions: {overview.partitions_count}")


def run_health_check(config: Config, logger: "Logger") -> None:
    """Connect with the environment configuration, print the overview and exit.

    Args:
        config: Application configuration
        logger: Logger instance

    Raises:
        typer.Exit: Always exits after health check
    """
    logger.info("Running health check...")
    if not config.kafka.bootstrap_servers:
        typer.echo("Health check failed: KAFKA_BOOTSTRAP_SERVERS is not set", err=True)
        raise typer.Exit(1)
    try:
        asyncio.run(_check_cluster(config))
    except KafkaPanelError as e:
        typer.echo(f"Health check failed: {e}", err=True)
        raise typer.Exit(1) from e
    raise typer.Exit(0)


def warn_public_bind(host: str, logger: "Logger") -> None:
    """Log a warning when the API is reachable from other machines.

    The API has no authentication, so anyone who can reach it can delete topics.
    """
    if host in ("127.0.0.1", "localhost", "::1"):
        return
    logger.warning("=" * 60)
    logger.warning("SECURITY WARNING: Server binding to non-localhost address")
    logger.warning(f"  Host: {host}")
    logger.warning("  The API has no authentication; anyone with network access")
    logger.warning("  can create and delete topics on the connected cluster")
    logger.warning("=" * 60)


@app.callback(invoke_without_command=True)
def main(
    host: str | None = typer.Option(
        None,
        "--host",
        help="Host to bind server (defaults to PANEL_HOST)",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        help="Port to bind server (defaults to PANEL_PORT)",
    ),
    _version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    health_check: bool = typer.Option(
        False,
        "--health-check",
        help="Connect to KAFKA_BOOTSTRAP_SERVERS, print the overview and exit",
    ),
) -> None:
    """Run the Kafka control panel HTTP server."""
    config = Config()

    log_path = os.getenv("PANEL_LOG_PATH")
    setup_logger(config.server, Path(log_path) if log_path else None)

    logger.info("=" * 60)
    logger.info(f"Kafka Panel v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Configuration: {config}")

    if health_check:
        run_health_check(config, logger)

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    warn_public_bind(bind_host, logger)

    logger.info(f"Running HTTP server on {bind_host}:{bind_port}{config.server.api_prefix}")
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_config=None)
    logger.info("Server shutdown complete")


if __name__ == "__main__":
    app()
