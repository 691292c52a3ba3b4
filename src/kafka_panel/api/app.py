"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from kafka_panel.api.middleware import RequestLoggingMiddleware
from kafka_panel.api.routes import health_router, router
from kafka_panel.config import Config
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager, GatewayFactory
from kafka_panel.services.metrics import MetricsProvider
from kafka_panel.services.topics import TopicCommandHandler
from kafka_panel.version import __version__


def create_app(
    config: Config | None = None,
    gateway_factory: GatewayFactory | None = None,
    metrics: MetricsProvider | None = None,
) -> FastAPI:
    """Create the control panel application.

    The services are created here and stored on ``app.state`` so every
    request handler shares one connection manager.

    Args:
        config: Configuration; read from the environment when omitted
        gateway_factory: Replacement for the confluent-kafka gateway (tests)
        metrics: Replacement for the simulated metrics provider

    Returns:
        Configured FastAPI application
    """
    config = config or Config()
    connection = ConnectionManager(config.kafka, gateway_factory)
    aggregator = MetadataAggregator(connection, config.sampling, metrics)
    commands = TopicCommandHandler(connection, config.kafka)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await connection.initialize()
        try:
            yield
        finally:
            await connection.disconnect()
            logger.info("Kafka panel stopped")

    app = FastAPI(
        title="Kafka Panel",
        version=__version__,
        lifespan=lifespan,
        openapi_url=f"{config.server.api_prefix}/openapi.json",
        docs_url=f"{config.server.api_prefix}/docs",
    )
    app.state.config = config
    app.state.connection = connection
    app.state.aggregator = aggregator
    app.state.commands = commands

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=config.server.api_prefix)
    app.include_router(health_router, prefix=config.server.api_prefix)
    return app
