"""Wire models shared by the server and the client library.

Every model serializes with camelCase aliases and accepts either the alias
or the field name on input.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from kafka_panel import validation

# Common field descriptions to avoid duplication
DESC_TOPIC_NAME = "Topic name"
DESC_BROKER_ID = "Broker node ID"


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


class WireModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump as a JSON-ready dict using the camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConnectionStatus(str, Enum):
    """Client-side view of a cluster connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class BrokerStatus(str, Enum):
    """Broker availability."""

    ONLINE = "online"
    OFFLINE = "offline"
    DEGRADED = "degraded"


class TopicStatus(str, Enum):
    """Topic lifecycle status shown in the UI."""

    ACTIVE = "active"
    DELETING = "deleting"
    ERROR = "error"


class HealthStatus(str, Enum):
    """Overall cluster health."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class ClusterConnection(WireModel):
    """A cluster the client believes it is connected to."""

    id: str = Field(description="Connection identifier")
    name: str = Field(description="Display name chosen by the operator")
    bootstrap_servers: str = Field(description="Comma-joined ordered host:port list")
    status: ConnectionStatus = Field(default=ConnectionStatus.DISCONNECTED)
    version: str | None = Field(default=None, description="Kafka version, when known")
    controller_id: int | None = Field(default=None, description="Controller broker ID")
    cluster_id: str | None = Field(default=None, description="Cluster ID")

    @property
    def servers(self) -> list[str]:
        """Return the bootstrap servers as an ordered list."""
        return validation.split_bootstrap_servers(self.bootstrap_servers)


class SavedClusters(WireModel):
    """Clusters the operator saved, plus the one last selected."""

    clusters: list[ClusterConnection] = Field(default_factory=list)
    selected_id: str | None = Field(default=None, description="ID of the selected cluster")


class ConnectionInfo(WireModel):
    """Server-side description of the active admin connection."""

    brokers: str = Field(description="Comma-joined bootstrap servers in use")
    client_id: str = Field(description="Client identifier sent to the brokers")
    cluster_id: str | None = Field(default=None, description="Cluster ID")
    controller_id: int | None = Field(default=None, description="Controller broker ID")
    connected_at: datetime = Field(default_factory=utc_now)


class BrokerMetrics(WireModel):
    """Per-broker resource metrics."""

    disk_usage: int = Field(default=0, description="Disk usage in bytes")
    network_in: int = Field(default=0, description="Inbound bytes per second")
    network_out: int = Field(default=0, description="Outbound bytes per second")
    requests_per_second: int = Field(default=0, description="Requests handled per second")


class Broker(WireModel):
    """A broker enriched with its estimated share of the cluster."""

    id: int = Field(description=DESC_BROKER_ID)
    host: str = Field(description="Broker hostname")
    port: int = Field(description="Broker port")
    rack: str | None = Field(default=None, description="Broker rack ID")
    status: BrokerStatus = Field(default=BrokerStatus.ONLINE)
    is_controller: bool = Field(default=False)
    topic_count: int = Field(default=0, description="Estimated topics with a replica here")
    partition_count: int = Field(default=0, description="Estimated partition replicas here")
    config: dict[str, Any] = Field(default_factory=dict)
    metrics: BrokerMetrics = Field(default_factory=BrokerMetrics)


class TopicMetrics(WireModel):
    """Best-effort per-topic metrics."""

    message_count: int = Field(default=0)
    size_bytes: int = Field(default=0)
    consumer_lag: int = Field(default=0)


class Topic(WireModel):
    """A topic with its configuration and metrics."""

    name: str = Field(description=DESC_TOPIC_NAME)
    partitions: int = Field(description="Number of partitions")
    replication_factor: int = Field(description="Replica count of the first partition")
    config: dict[str, str] = Field(default_factory=dict, description="Topic configuration")
    metrics: TopicMetrics = Field(default_factory=TopicMetrics)
    status: TopicStatus = Field(default=TopicStatus.ACTIVE)


class PartitionInfo(WireModel):
    """Information about a topic partition."""

    partition: int = Field(description="Partition ID")
    leader: int = Field(description="Leader broker ID (-1 when leaderless)")
    replicas: list[int] = Field(description="List of replica broker IDs")
    isr: list[int] = Field(description="List of in-sync replica broker IDs")


class TopicDetail(Topic):
    """A topic together with its partition layout."""

    partition_details: list[PartitionInfo] = Field(default_factory=list)


class ClusterOverview(WireModel):
    """Dashboard aggregate for the whole cluster."""

    brokers_online: int = 0
    brokers_total: int = 0
    topics_count: int = 0
    partitions_count: int = 0
    consumer_groups_count: int = 0
    messages_per_second: int = 0
    status: HealthStatus = HealthStatus.UNKNOWN

    @classmethod
    def unknown(cls) -> "ClusterOverview":
        """Return the zeroed overview used when no cluster is reachable."""
        return cls(status=HealthStatus.UNKNOWN)


def health_status(brokers_online: int, brokers_total: int) -> HealthStatus:
    """Derive cluster health from broker availability."""
    if brokers_online == 0:
        return HealthStatus.CRITICAL
    if brokers_online == brokers_total:
        return HealthStatus.HEALTHY
    return HealthStatus.WARNING


# WRITE operation response models


class TopicCreated(WireModel):
    """Response for successful topic creation."""

    name: str = Field(description=DESC_TOPIC_NAME)
    partitions: int
    replication_factor: int
    config: dict[str, str] = Field(default_factory=dict)
    status: TopicStatus = Field(default=TopicStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utc_now)


class TopicDeleted(WireModel):
    """Response for successful topic deletion."""

    topic_name: str = Field(description=DESC_TOPIC_NAME)
    deleted_at: datetime = Field(default_factory=utc_now)
    warning: str = "This operation is permanent - all topic data has been lost"


class TopicConfigUpdated(WireModel):
    """Response for a successful configuration change."""

    topic_name: str = Field(description=DESC_TOPIC_NAME)
    config: dict[str, str]
    updated_at: datetime = Field(default_factory=utc_now)


# Request schemas


class ConnectRequest(WireModel):
    """Body of ``POST /kafka/connect``."""

    name: str
    bootstrap_servers: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Require a cluster name."""
        if not v:
            raise PydanticCustomError("name_required", "Cluster name is required")
        return v

    @field_validator("bootstrap_servers")
    @classmethod
    def validate_bootstrap_servers(cls, v: str) -> str:
        """Require a ``host:port[,host:port]*`` list."""
        problem = validation.bootstrap_servers_problem(v)
        if problem is not None:
            raise PydanticCustomError("bootstrap_servers", problem)
        return v


class CreateTopicRequest(WireModel):
    """Body of ``POST /kafka/topics``."""

    name: str
    partitions: int = Field(strict=True)
    replication_factor: int = Field(strict=True)
    config: dict[str, str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Apply Kafka topic naming rules."""
        problem = validation.topic_name_problem(v)
        if problem is not None:
            raise PydanticCustomError("topic_name", problem)
        return v

    @field_validator("partitions")
    @classmethod
    def validate_partitions(cls, v: int) -> int:
        """Bound the partition count."""
        if v < validation.MIN_PARTITIONS:
            raise PydanticCustomError("partitions_min", validation.MSG_PARTITIONS_MIN)
        if v > validation.MAX_PARTITIONS:
            raise PydanticCustomError("partitions_max", validation.MSG_PARTITIONS_MAX)
        return v

    @field_validator("replication_factor")
    @classmethod
    def validate_replication_factor(cls, v: int) -> int:
        """Bound the replication factor."""
        if v < validation.MIN_REPLICATION_FACTOR:
            raise PydanticCustomError("replicas_min", validation.MSG_REPLICAS_MIN)
        if v > validation.MAX_REPLICATION_FACTOR:
            raise PydanticCustomError("replicas_max", validation.MSG_REPLICAS_MAX)
        return v


class DeleteTopicRequest(WireModel):
    """Body of ``DELETE /kafka/topics``."""

    topic_name: str

    @field_validator("topic_name")
    @classmethod
    def validate_topic_name(cls, v: str) -> str:
        """Require a topic name."""
        if not v:
            raise PydanticCustomError("topic_name_required", validation.MSG_TOPIC_NAME_REQUIRED)
        return v


class UpdateTopicConfigRequest(WireModel):
    """Body of ``PATCH /kafka/topics/{name}/config``."""

    config: dict[str, str]

    @field_validator("config")
    @classmethod
    def validate_config(cls, v: dict[str, str]) -> dict[str, str]:
        """Require at least one entry."""
        if not v:
            raise PydanticCustomError(
                "config_empty", "At least one configuration entry is required"
            )
        return v
