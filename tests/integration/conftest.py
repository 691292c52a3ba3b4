"""Pytest fixtures for Kafka Panel integration tests.

Uses testcontainers to spin up a real Kafka instance for testing.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from testcontainers.kafka import KafkaContainer

from kafka_panel.api import create_app
from kafka_panel.config import ClientConfig, Config, KafkaConfig, SamplingConfig, ServerConfig
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.topics import TopicCommandHandler

pytestmark = pytest.mark.integration


@pytest.fixture(scope="session")
def kafka_container() -> Generator[KafkaContainer, None, None]:
    """Start a Kafka container for integration tests.

    This fixture has session scope to reuse the same container
    across all integration tests, improving test performance.
    """
    if os.environ.get("SKIP_INTEGRATION_TESTS", "").lower() == "true":
        pytest.skip("Integration tests disabled via SKIP_INTEGRATION_TESTS")

    container = KafkaContainer()
    try:
        container.start()
        yield container
    finally:
        container.stop()


@pytest.fixture
def kafka_bootstrap_servers(kafka_container: KafkaContainer) -> str:
    """Get the bootstrap servers from the running Kafka container."""
    return kafka_container.get_bootstrap_server()


@pytest.fixture
def integration_kafka_config() -> KafkaConfig:
    """Create Kafka configuration for integration tests."""
    return KafkaConfig(
        client_id="integration-test-client",
        security_protocol="PLAINTEXT",
        operation_timeout=30.0,
    )


@pytest_asyncio.fixture
async def integration_connection(
    integration_kafka_config: KafkaConfig, kafka_bootstrap_servers: str
) -> AsyncGenerator[ConnectionManager, None]:
    """Create a connection to the container's broker."""
    connection = ConnectionManager(integration_kafka_config)
    await connection.connect(kafka_bootstrap_servers)
    yield connection
    await connection.disconnect()


@pytest.fixture
def integration_aggregator(integration_connection: ConnectionManager) -> MetadataAggregator:
    """Create a metadata aggregator over the live connection."""
    return MetadataAggregator(integration_connection, SamplingConfig())


@pytest.fixture
def integration_commands(
    integration_connection: ConnectionManager, integration_kafka_config: KafkaConfig
) -> TopicCommandHandler:
    """Create a topic command handler over the live connection."""
    return TopicCommandHandler(integration_connection, integration_kafka_config)


@pytest_asyncio.fixture
async def integration_http(
    integration_kafka_config: KafkaConfig,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for an application with a real gateway."""
    config = Config.__new__(Config)
    config.kafka = integration_kafka_config
    config.sampling = SamplingConfig()
    config.server = ServerConfig()
    config.client = ClientConfig()
    app = create_app(config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
        await app.state.connection.disconnect()


@pytest.fixture
def unique_topic_name() -> str:
    """Generate a unique topic name for each test."""
    return f"test-topic-{uuid.uuid4().hex[:8]}"
