"""Pytest fixtures for Kafka panel tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from kafka_panel.api import create_app
from kafka_panel.client.api import KafkaPanelClient
from kafka_panel.config import ClientConfig, Config, KafkaConfig, SamplingConfig, ServerConfig
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.metrics import SimulatedMetricsProvider
from kafka_panel.services.topics import TopicCommandHandler
from tests.fakes import FakeCluster


@pytest.fixture
def kafka_config() -> KafkaConfig:
    """Create test Kafka configuration."""
    return KafkaConfig(
        bootstrap_servers=None,
        client_id="test-client",
        security_protocol="PLAINTEXT",
        operation_timeout=5.0,
    )


@pytest.fixture
def kafka_config_sasl() -> KafkaConfig:
    """Create test Kafka configuration with SASL."""
    return KafkaConfig(
        bootstrap_servers="localhost:9092",
        client_id="test-client",
        security_protocol="SASL_PLAINTEXT",
        sasl_mechanism="PLAIN",
        sasl_username="test-user",
        sasl_password="test-password",
    )


@pytest.fixture
def sampling_config() -> SamplingConfig:
    """Create test sampling configuration."""
    return SamplingConfig(overview_sample_size=50, broker_sample_size=20)


@pytest.fixture
def server_config() -> ServerConfig:
    """Create test server configuration."""
    return ServerConfig(
        log_level="DEBUG",
        json_logging=False,
        debug_mode=True,
    )


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    """Create test client configuration with temporary state files."""
    return ClientConfig(
        state_file=tmp_path / "kafka-cluster.json",
        clusters_file=tmp_path / "kafka-clusters.json",
        retry_delay=0.01,
    )


@pytest.fixture
def config(
    kafka_config: KafkaConfig,
    sampling_config: SamplingConfig,
    server_config: ServerConfig,
    client_config: ClientConfig,
) -> Config:
    """Create test configuration."""
    cfg = Config.__new__(Config)
    cfg.kafka = kafka_config
    cfg.sampling = sampling_config
    cfg.server = server_config
    cfg.client = client_config
    return cfg


@pytest.fixture
def cluster() -> FakeCluster:
    """Three-broker in-memory cluster without topics."""
    return FakeCluster()


@pytest.fixture
def connection(kafka_config: KafkaConfig, cluster: FakeCluster) -> ConnectionManager:
    """Connection manager that opens gateways on the fake cluster."""
    return ConnectionManager(kafka_config, cluster.factory)


@pytest.fixture
def aggregator(
    connection: ConnectionManager, sampling_config: SamplingConfig
) -> MetadataAggregator:
    """Metadata aggregator over the fake cluster."""
    return MetadataAggregator(connection, sampling_config)


@pytest.fixture
def commands(connection: ConnectionManager, kafka_config: KafkaConfig) -> TopicCommandHandler:
    """Topic command handler over the fake cluster."""
    return TopicCommandHandler(connection, kafka_config)


@pytest.fixture
def app(config: Config, cluster: FakeCluster) -> FastAPI:
    """Application wired to the fake cluster with seeded metrics."""
    return create_app(
        config, gateway_factory=cluster.factory, metrics=SimulatedMetricsProvider(seed=1)
    )


@pytest_asyncio.fixture
async def http(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Raw HTTP client driving the ASGI app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def api(app: FastAPI) -> AsyncGenerator[KafkaPanelClient, None]:
    """Panel client talking to the in-process app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test/api") as client:
        yield KafkaPanelClient(client=client)
