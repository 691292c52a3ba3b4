"""Tests for wire models and request schemas."""

import pydantic
import pytest

from kafka_panel.models import (
    Broker,
    ClusterConnection,
    ClusterOverview,
    ConnectRequest,
    CreateTopicRequest,
    DeleteTopicRequest,
    HealthStatus,
    Topic,
    TopicDeleted,
    UpdateTopicConfigRequest,
    health_status,
)


def error_messages(exc: pydantic.ValidationError) -> dict[str, str]:
    return {".".join(str(p) for p in e["loc"]): e["msg"] for e in exc.errors()}


class TestWireFormat:
    """Tests for camelCase serialization."""

    def test_to_wire_uses_aliases(self) -> None:
        """Test fields are dumped with camelCase names."""
        topic = Topic(name="orders", partitions=3, replication_factor=2)
        wire = topic.to_wire()
        assert wire["replicationFactor"] == 2
        assert wire["metrics"] == {"messageCount": 0, "sizeBytes": 0, "consumerLag": 0}
        assert wire["status"] == "active"

    def test_to_wire_drops_none(self) -> None:
        """Test optional fields that are unset are omitted."""
        broker = Broker(id=1, host="broker-1", port=9092)
        wire = broker.to_wire()
        assert "rack" not in wire
        assert wire["isController"] is False

    def test_accepts_alias_or_field_name(self) -> None:
        """Test input by alias and by field name."""
        a = ClusterConnection.model_validate(
            {"id": "1", "name": "dev", "bootstrapServers": "a:1,b:2"}
        )
        b = ClusterConnection(id="1", name="dev", bootstrap_servers="a:1,b:2")
        assert a == b
        assert a.servers == ["a:1", "b:2"]

    def test_unknown_overview(self) -> None:
        """Test the zeroed overview used on failures."""
        wire = ClusterOverview.unknown().to_wire()
        assert wire["status"] == "unknown"
        assert wire["brokersOnline"] == 0
        assert wire["consumerGroupsCount"] == 0

    def test_deleted_carries_warning(self) -> None:
        """Test deletion responses carry the permanence warning."""
        assert "permanent" in TopicDeleted(topic_name="orders").warning


class TestHealthStatus:
    """Tests for health derivation."""

    def test_all_online(self) -> None:
        """Test healthy when every broker is online."""
        assert health_status(3, 3) == HealthStatus.HEALTHY

    def test_some_offline(self) -> None:
        """Test warning when some brokers are offline."""
        assert health_status(2, 3) == HealthStatus.WARNING

    def test_none_online(self) -> None:
        """Test critical when no broker is online."""
        assert health_status(0, 3) == HealthStatus.CRITICAL
        assert health_status(0, 0) == HealthStatus.CRITICAL


class TestConnectRequest:
    """Tests for the connect body schema."""

    def test_valid(self) -> None:
        """Test a valid body."""
        form = ConnectRequest.model_validate(
            {"name": "dev", "bootstrapServers": "localhost:9092"}
        )
        assert form.bootstrap_servers == "localhost:9092"

    def test_missing_name(self) -> None:
        """Test an empty cluster name."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            ConnectRequest.model_validate({"name": "", "bootstrapServers": "a:1"})
        assert error_messages(exc_info.value) == {"name": "Cluster name is required"}

    def test_bad_servers(self) -> None:
        """Test a malformed bootstrap list."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            ConnectRequest.model_validate({"name": "dev", "bootstrapServers": "localhost"})
        assert error_messages(exc_info.value) == {
            "bootstrapServers": "Format: host:port or host1:port1,host2:port2"
        }


class TestCreateTopicRequest:
    """Tests for the create topic body schema."""

    def test_valid(self) -> None:
        """Test a valid body with config."""
        form = CreateTopicRequest.model_validate(
            {
                "name": "orders",
                "partitions": 6,
                "replicationFactor": 3,
                "config": {"retention.ms": "86400000"},
            }
        )
        assert form.replication_factor == 3
        assert form.config == {"retention.ms": "86400000"}

    def test_reports_every_field(self) -> None:
        """Test all violated fields are reported at once."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CreateTopicRequest.model_validate(
                {"name": "bad name", "partitions": 0, "replicationFactor": 11}
            )
        assert error_messages(exc_info.value) == {
            "name": "Topic name can only contain letters, numbers, dots, hyphens, and underscores",
            "partitions": "Must have at least 1 partition",
            "replicationFactor": "Maximum 10 replicas allowed",
        }

    def test_partition_upper_bound(self) -> None:
        """Test the partition ceiling."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CreateTopicRequest.model_validate(
                {"name": "t", "partitions": 1001, "replicationFactor": 1}
            )
        assert error_messages(exc_info.value) == {"partitions": "Maximum 1000 partitions allowed"}

    def test_numbers_must_be_integers(self) -> None:
        """Test strings are not coerced into counts."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CreateTopicRequest.model_validate(
                {"name": "t", "partitions": "3", "replicationFactor": 1}
            )
        assert "partitions" in error_messages(exc_info.value)


class TestOtherRequests:
    """Tests for delete and config update schemas."""

    def test_delete_requires_name(self) -> None:
        """Test an empty topic name on delete."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            DeleteTopicRequest.model_validate({"topicName": ""})
        assert error_messages(exc_info.value) == {"topicName": "Topic name is required"}

    def test_config_update_needs_entries(self) -> None:
        """Test an empty config update."""
        with pytest.raises(pydantic.ValidationError) as exc_info:
            UpdateTopicConfigRequest.model_validate({"config": {}})
        assert error_messages(exc_info.value) == {
            "config": "At least one configuration entry is required"
        }
