"""In-memory stand-ins for a Kafka cluster and the admin gateway."""

from typing import Any

from confluent_kafka import KafkaError, KafkaException

from kafka_panel.kafka_wrapper.gateway import (
    ClusterDescription,
    NodeInfo,
    PartitionMetadata,
    TopicMetadata,
)


def kafka_error(code: int, reason: str) -> KafkaException:
    """Build a KafkaException the way librdkafka reports errors."""
    return KafkaException(KafkaError(code, reason))


class FakeCluster:
    """In-memory cluster state shared by every gateway opened against it."""

    def __init__(self, broker_count: int = 3, cluster_id: str = "test-cluster") -> None:
        self.cluster_id = cluster_id
        self.nodes = [
            NodeInfo(id=i, host=f"broker-{i}", port=9092 + i) for i in range(1, broker_count + 1)
        ]
        self.controller_id: int | None = 1 if broker_count else None
        self.topics: dict[str, list[PartitionMetadata]] = {}
        self.configs: dict[str, dict[str, str]] = {}
        self.consumer_groups: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.gateways: list["FakeGateway"] = []

    def add_topic(
        self,
        name: str,
        partitions: int = 1,
        replication_factor: int = 1,
        config: dict[str, str] | None = None,
    ) -> None:
        """Create a topic with replicas spread round-robin over the brokers."""
        ids = [node.id for node in self.nodes]
        layout = []
        for p in range(partitions):
            replicas = [ids[(p + r) % len(ids)] for r in range(replication_factor)]
            layout.append(
                PartitionMetadata(id=p, leader=replicas[0], replicas=replicas, isr=replicas)
            )
        self.topics[name] = layout
        self.configs[name] = dict(config or {"cleanup.policy": "delete"})

    def fail(self, method: str, error: Exception | None = None) -> None:
        """Make every gateway call to ``method`` raise."""
        self.failures[method] = error or kafka_error(
            KafkaError._TRANSPORT, "Broker transport failure"
        )

    def factory(self, config: dict[str, Any], request_timeout: float) -> "FakeGateway":
        """Gateway factory handed to ``ConnectionManager``."""
        gateway = FakeGateway(self, config, request_timeout)
        self.gateways.append(gateway)
        return gateway


class FakeGateway:
    """Stand-in for ``AdminGateway`` backed by a ``FakeCluster``."""

    def __init__(self, cluster: FakeCluster, config: dict[str, Any], request_timeout: float):
        self.cluster = cluster
        self.config = config
        self.request_timeout = request_timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _enter(self, method: str) -> None:
        if self._closed:
            raise kafka_error(KafkaError._DESTROY, "Admin client has been closed")
        self.cluster.calls.append(method)
        if method in self.cluster.failures:
            raise self.cluster.failures[method]

    async def describe_cluster(self) -> ClusterDescription:
        self._enter("describe_cluster")
        return ClusterDescription(
            cluster_id=self.cluster.cluster_id,
            controller_id=self.cluster.controller_id,
            nodes=list(self.cluster.nodes),
        )

    async def list_topics(self) -> list[str]:
        self._enter("list_topics")
        return list(self.cluster.topics)

    async def fetch_topic_metadata(self, names: list[str]) -> list[TopicMetadata]:
        self._enter("fetch_topic_metadata")
        return [TopicMetadata(name=name, partitions=self.cluster.topics[name]) for name in names]

    async def describe_topic_configs(self, names: list[str]) -> dict[str, dict[str, str]]:
        self._enter("describe_topic_configs")
        return {name: dict(self.cluster.configs.get(name, {})) for name in names}

    async def list_consumer_groups(self) -> list[str]:
        self._enter("list_consumer_groups")
        return list(self.cluster.consumer_groups)

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
        operation_timeout: float = 30.0,
    ) -> None:
        self._enter("create_topic")
        self.cluster.add_topic(name, partitions, replication_factor, config)

    async def delete_topic(self, name: str, operation_timeout: float = 30.0) -> None:
        self._enter("delete_topic")
        del self.cluster.topics[name]
        self.cluster.configs.pop(name, None)

    async def alter_topic_config(self, name: str, updates: dict[str, str]) -> None:
        self._enter("alter_topic_config")
        self.cluster.configs.setdefault(name, {}).update(updates)

    def close(self) -> None:
        self._closed = True
