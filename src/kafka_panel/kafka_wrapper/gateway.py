"""Asyncio gateway over the confluent-kafka AdminClient."""

import asyncio
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

from confluent_kafka import KafkaError, KafkaException, TopicCollection
from confluent_kafka.admin import (
    AdminClient,
    AlterConfigOpType,
    ConfigEntry,
    ConfigResource,
    NewTopic,
    ResourceType,
)
from loguru import logger


@dataclass(frozen=True)
class NodeInfo:
    """A broker as reported by the cluster."""

    id: int
    host: str
    port: int
    rack: str | None = None


@dataclass(frozen=True)
class ClusterDescription:
    """Result of a describe-cluster round trip."""

    cluster_id: str | None
    controller_id: int | None
    nodes: list[NodeInfo] = field(default_factory=list)


@dataclass(frozen=True)
class PartitionMetadata:
    """Replica placement of a single partition."""

    id: int
    leader: int
    replicas: list[int]
    isr: list[int]


@dataclass(frozen=True)
class TopicMetadata:
    """Partition layout of a topic."""

    name: str
    partitions: list[PartitionMetadata]


def _timed_out(what: str) -> KafkaException:
    return KafkaException(KafkaError(KafkaError._TIMED_OUT, f"{what} timed out"))


def _node_id(node: Any) -> int:
    return -1 if node is None else node.id


class AdminGateway:
    """Owns one AdminClient handle and exposes its RPCs as coroutines.

    Every method raises ``KafkaException`` on failure. After ``close()`` the
    handle is gone and every call fails the same way, so in-flight callers of
    a replaced connection error out instead of using a stale client.
    """

    def __init__(self, config: dict[str, Any], request_timeout: float = 30.0) -> None:
        """Create the underlying AdminClient.

        Args:
            config: librdkafka configuration (``bootstrap.servers`` etc.)
            request_timeout: Seconds to wait for any single admin request

        """
        self._request_timeout = request_timeout
        self._admin: AdminClient | None = AdminClient(config)
        logger.debug(f"Created AdminClient for {config.get('bootstrap.servers')}")

    @property
    def closed(self) -> bool:
        """Whether the handle has been released."""
        return self._admin is None

    def _client(self) -> AdminClient:
        if self._admin is None:
            raise KafkaException(KafkaError(KafkaError._DESTROY, "Admin client has been closed"))
        return self._admin

    async def _wait(self, future: Future[Any], what: str) -> Any:
        try:
            return await asyncio.wait_for(asyncio.wrap_future(future), self._request_timeout)
        except TimeoutError as e:
            raise _timed_out(what) from e

    async def _wait_all(self, futures: dict[Any, Future[Any]], what: str) -> dict[Any, Any]:
        keys = list(futures)
        results = await asyncio.gather(*(self._wait(futures[key], what) for key in keys))
        return dict(zip(keys, results, strict=True))

    async def describe_cluster(self) -> ClusterDescription:
        """Describe brokers, controller and cluster ID."""
        future = self._client().describe_cluster(request_timeout=self._request_timeout)
        result = await self._wait(future, "Describe cluster")
        controller = result.controller
        return ClusterDescription(
            cluster_id=result.cluster_id,
            controller_id=None if controller is None else controller.id,
            nodes=[
                NodeInfo(id=node.id, host=node.host, port=node.port, rack=node.rack)
                for node in result.nodes
            ],
        )

    async def list_topics(self) -> list[str]:
        """Return all topic names, in cluster order."""
        client = self._client()
        metadata = await asyncio.to_thread(client.list_topics, timeout=self._request_timeout)
        return list(metadata.topics)

    async def fetch_topic_metadata(self, names: list[str]) -> list[TopicMetadata]:
        """Fetch partition layout for the given topics, preserving order."""
        if not names:
            return []
        futures = self._client().describe_topics(
            TopicCollection(list(names)), request_timeout=self._request_timeout
        )
        descriptions = await self._wait_all(futures, "Describe topics")
        topics: list[TopicMetadata] = []
        for name in names:
            description = descriptions[name]
            partitions = [
                PartitionMetadata(
                    id=partition.id,
                    leader=_node_id(partition.leader),
                    replicas=[node.id for node in partition.replicas],
                    isr=[node.id for node in partition.isr],
                )
                for partition in description.partitions
            ]
            topics.append(
                TopicMetadata(name=name, partitions=sorted(partitions, key=lambda p: p.id))
            )
        return topics

    async def describe_topic_configs(self, names: list[str]) -> dict[str, dict[str, str]]:
        """Return the configuration of each topic keyed by topic name."""
        if not names:
            return {}
        resources = [ConfigResource(ResourceType.TOPIC, name) for name in names]
        futures = self._client().describe_configs(
            resources, request_timeout=self._request_timeout
        )
        results = await self._wait_all(futures, "Describe configs")
        configs: dict[str, dict[str, str]] = {}
        for resource, entries in results.items():
            configs[resource.name] = {
                key: entry.value for key, entry in entries.items() if entry.value is not None
            }
        return configs

    async def list_consumer_groups(self) -> list[str]:
        """Return the IDs of all consumer groups."""
        future = self._client().list_consumer_groups(request_timeout=self._request_timeout)
        result = await self._wait(future, "List consumer groups")
        return [group.group_id for group in result.valid]

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
        operation_timeout: float = 30.0,
    ) -> None:
        """Create a topic and wait until its partitions have leaders."""
        new_topic = NewTopic(
            topic=name,
            num_partitions=partitions,
            replication_factor=replication_factor,
            config=config or {},
        )
        futures = self._client().create_topics(
            [new_topic],
            operation_timeout=operation_timeout,
            request_timeout=self._request_timeout + operation_timeout,
        )
        for future in futures.values():
            await self._wait_operation(future, "Create topic", operation_timeout)

    async def delete_topic(self, name: str, operation_timeout: float = 30.0) -> None:
        """Delete a topic and wait for the controller to confirm."""
        futures = self._client().delete_topics(
            [name],
            operation_timeout=operation_timeout,
            request_timeout=self._request_timeout + operation_timeout,
        )
        for future in futures.values():
            await self._wait_operation(future, "Delete topic", operation_timeout)

    async def alter_topic_config(self, name: str, updates: dict[str, str]) -> None:
        """Set the given configuration keys on a topic, leaving others untouched."""
        resource = ConfigResource(
            ResourceType.TOPIC,
            name,
            incremental_configs=[
                ConfigEntry(key, value, incremental_operation=AlterConfigOpType.SET)
                for key, value in updates.items()
            ],
        )
        futures = self._client().incremental_alter_configs(
            [resource], request_timeout=self._request_timeout
        )
        await self._wait_all(futures, "Alter configs")

    async def _wait_operation(
        self, future: Future[Any], what: str, operation_timeout: float
    ) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.wrap_future(future), self._request_timeout + operation_timeout
            )
        except TimeoutError as e:
            raise _timed_out(what) from e

    def close(self) -> None:
        """Release the AdminClient handle."""
        if self._admin is not None:
            # AdminClient has no explicit close; drop the reference
            self._admin = None
            logger.debug("Admin client reference released")

    def __repr__(self) -> str:
        """Return string representation."""
        status = "closed" if self._admin is None else "open"
        return f"AdminGateway(status={status})"
