"""Integration tests for Kafka operations.

Tests the panel services and HTTP API against a real Kafka container.
"""

import pytest
from httpx import AsyncClient

from kafka_panel.config import KafkaConfig
from kafka_panel.models import HealthStatus
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.topics import TopicCommandHandler
from kafka_panel.utils.errors import (
    KafkaConnectionError,
    ReplicationFactorExceeded,
    TopicAlreadyExists,
    TopicNotFound,
)

pytestmark = pytest.mark.integration


class TestConnectionIntegration:
    """Integration tests for ConnectionManager."""

    @pytest.mark.asyncio
    async def test_connect_reports_cluster(
        self, integration_connection: ConnectionManager, kafka_bootstrap_servers: str
    ) -> None:
        """Test connecting reads the cluster identity."""
        info = integration_connection.connection_info()

        assert integration_connection.is_active()
        assert info is not None
        assert info.brokers == kafka_bootstrap_servers
        assert info.cluster_id

    @pytest.mark.asyncio
    async def test_unreachable_broker(self) -> None:
        """Test a closed port fails with a connection error."""
        connection = ConnectionManager(KafkaConfig(operation_timeout=3.0))

        with pytest.raises(KafkaConnectionError):
            await connection.connect("localhost:1")

        assert not connection.is_active()


class TestAggregatorIntegration:
    """Integration tests for MetadataAggregator."""

    @pytest.mark.asyncio
    async def test_overview(self, integration_aggregator: MetadataAggregator) -> None:
        """Test the overview against a single-broker cluster."""
        overview = await integration_aggregator.get_cluster_overview()

        assert overview.brokers_total == 1
        assert overview.brokers_online == 1
        assert overview.status == HealthStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_brokers(self, integration_aggregator: MetadataAggregator) -> None:
        """Test the single broker is listed as controller."""
        brokers = await integration_aggregator.get_brokers()

        assert len(brokers) == 1
        assert brokers[0].is_controller


class TestTopicLifecycleIntegration:
    """Integration tests for topic commands."""

    @pytest.mark.asyncio
    async def test_create_describe_delete(
        self,
        integration_commands: TopicCommandHandler,
        integration_aggregator: MetadataAggregator,
        unique_topic_name: str,
    ) -> None:
        """Test a created topic is visible immediately and can be deleted."""
        await integration_commands.create_topic(
            unique_topic_name, 3, 1, {"retention.ms": "3600000"}
        )

        detail = await integration_aggregator.get_topic_details(unique_topic_name)
        assert detail.partitions == 3
        assert len(detail.partition_details) == 3
        assert detail.config["retention.ms"] == "3600000"

        names = [topic.name for topic in await integration_aggregator.get_topics()]
        assert unique_topic_name in names

        await integration_commands.delete_topic(unique_topic_name)
        with pytest.raises(TopicNotFound):
            await integration_commands.delete_topic(unique_topic_name)

    @pytest.mark.asyncio
    async def test_duplicate_rejected(
        self, integration_commands: TopicCommandHandler, unique_topic_name: str
    ) -> None:
        """Test creating the same topic twice fails."""
        await integration_commands.create_topic(unique_topic_name, 1, 1)

        with pytest.raises(TopicAlreadyExists):
            await integration_commands.create_topic(unique_topic_name, 1, 1)

        await integration_commands.delete_topic(unique_topic_name)

    @pytest.mark.asyncio
    async def test_replication_factor_above_brokers(
        self, integration_commands: TopicCommandHandler, unique_topic_name: str
    ) -> None:
        """Test a replication factor above the broker count is refused."""
        with pytest.raises(ReplicationFactorExceeded):
            await integration_commands.create_topic(unique_topic_name, 1, 3)

    @pytest.mark.asyncio
    async def test_update_config(
        self,
        integration_commands: TopicCommandHandler,
        integration_aggregator: MetadataAggregator,
        unique_topic_name: str,
    ) -> None:
        """Test a configuration change is visible on the next read."""
        await integration_commands.create_topic(unique_topic_name, 1, 1)

        await integration_commands.update_topic_config(
            unique_topic_name, {"retention.ms": "60000"}
        )

        detail = await integration_aggregator.get_topic_details(unique_topic_name)
        assert detail.config["retention.ms"] == "60000"
        await integration_commands.delete_topic(unique_topic_name)


class TestHttpIntegration:
    """Integration tests through the HTTP API."""

    @pytest.mark.asyncio
    async def test_connect_create_delete(
        self, integration_http: AsyncClient, kafka_bootstrap_servers: str, unique_topic_name: str
    ) -> None:
        """Test the browser flow end to end."""
        response = await integration_http.post(
            "/api/kafka/connect",
            json={"name": "local", "bootstrapServers": kafka_bootstrap_servers},
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "connected"

        response = await integration_http.post(
            "/api/kafka/topics",
            json={"name": unique_topic_name, "partitions": 2, "replicationFactor": 1},
        )
        assert response.status_code == 200

        response = await integration_http.get(f"/api/kafka/topics/{unique_topic_name}")
        assert response.json()["data"]["partitions"] == 2

        response = await integration_http.request(
            "DELETE", "/api/kafka/topics", json={"topicName": unique_topic_name}
        )
        assert response.status_code == 200
        assert response.json()["data"]["topicName"] == unique_topic_name

        response = await integration_http.delete("/api/kafka/connect")
        assert response.status_code == 200
