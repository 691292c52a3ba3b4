"""Read-through projections of cluster metadata for the dashboard."""

import asyncio

from confluent_kafka import KafkaException
from loguru import logger

from kafka_panel.config import SamplingConfig
from kafka_panel.kafka_wrapper.gateway import AdminGateway, ClusterDescription, TopicMetadata
from kafka_panel.models import (
    Broker,
    BrokerMetrics,
    BrokerStatus,
    ClusterOverview,
    PartitionInfo,
    Topic,
    TopicDetail,
    TopicMetrics,
    TopicStatus,
    health_status,
)
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.metrics import MetricsProvider, SimulatedMetricsProvider
from kafka_panel.services.sampling import SamplingStrategy
from kafka_panel.utils.errors import KafkaOperationError, TopicNotFound

# Partitions assumed per topic when the sampled metadata fetch fails
FALLBACK_PARTITIONS_PER_TOPIC = 3


def replication_factor_of(topic: TopicMetadata) -> int:
    """Replica count of the first partition, or 1 when unknown."""
    if not topic.partitions:
        return 1
    return len(topic.partitions[0].replicas) or 1


class MetadataAggregator:
    """Builds overview, broker and topic projections from the live connection.

    Nothing is cached: every call goes to the cluster. Each method raises
    ``NotConnectedError`` before touching the gateway when there is no
    connection, and wraps failed required requests in ``KafkaOperationError``.
    Optional sub-fetches (partition sampling, configs, metrics, consumer
    groups) degrade to defaults instead of failing the call.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        sampling: SamplingConfig,
        metrics: MetricsProvider | None = None,
    ) -> None:
        self._connection = connection
        self.overview_sampling = SamplingStrategy(sampling.overview_sample_size)
        self.broker_sampling = SamplingStrategy(sampling.broker_sample_size)
        self.metrics: MetricsProvider = metrics or SimulatedMetricsProvider()

    async def get_cluster_overview(self) -> ClusterOverview:
        """Compute broker, topic, partition and consumer group counts.

        Returns:
            Cluster overview

        Raises:
            NotConnectedError: If no connection is active
            KafkaOperationError: If the cluster or topic listing fails
        """
        gateway = self._connection.require_gateway()
        try:
            logger.debug("Fetching cluster overview")
            description, names = await asyncio.gather(
                gateway.describe_cluster(), gateway.list_topics()
            )
        except KafkaException as e:
            logger.error(f"Failed to fetch cluster overview: {e}")
            raise KafkaOperationError(f"Failed to fetch cluster overview: {e}") from e

        partitions_count, consumer_groups_count = await asyncio.gather(
            self._count_partitions(gateway, names),
            self._count_consumer_groups(gateway),
        )

        brokers_total = len(description.nodes)
        # Every broker returned by describe-cluster is reachable
        brokers_online = brokers_total
        overview = ClusterOverview(
            brokers_online=brokers_online,
            brokers_total=brokers_total,
            topics_count=len(names),
            partitions_count=partitions_count,
            consumer_groups_count=consumer_groups_count,
            messages_per_second=0,
            status=health_status(brokers_online, brokers_total),
        )
        logger.info(
            f"Cluster overview: {brokers_total} brokers, {len(names)} topics, "
            f"~{partitions_count} partitions"
        )
        return overview

    async def _count_partitions(self, gateway: AdminGateway, names: list[str]) -> int:
        if not names:
            return 0
        sample = self.overview_sampling.select(names)
        try:
            metadata = await gateway.fetch_topic_metadata(sample)
        except Exception as e:
            logger.warning(f"Could not calculate partition count: {e}")
            return len(names) * FALLBACK_PARTITIONS_PER_TOPIC
        sample_total = sum(len(topic.partitions) for topic in metadata)
        return self.overview_sampling.extrapolate(sample_total, len(sample), len(names))

    async def _count_consumer_groups(self, gateway: AdminGateway) -> int:
        try:
            return len(await gateway.list_consumer_groups())
        except Exception as e:
            logger.warning(f"Could not count consumer groups: {e}")
            return 0

    async def get_brokers(self) -> list[Broker]:
        """List brokers with estimated topic and partition counts.

        Returns:
            Brokers in the order the cluster reports them

        Raises:
            NotConnectedError: If no connection is active
            KafkaOperationError: If describing the cluster fails
        """
        gateway = self._connection.require_gateway()
        try:
            logger.debug("Listing brokers")
            description = await gateway.describe_cluster()
        except KafkaException as e:
            logger.error(f"Failed to fetch brokers: {e}")
            raise KafkaOperationError(f"Failed to fetch brokers: {e}") from e

        distribution = await self._broker_distribution(gateway, description)
        metrics = await asyncio.gather(
            *(self._broker_metrics(node.id) for node in description.nodes)
        )

        brokers = [
            Broker(
                id=node.id,
                host=node.host,
                port=node.port,
                rack=node.rack or None,
                status=BrokerStatus.ONLINE,
                is_controller=node.id == description.controller_id,
                topic_count=distribution.get(node.id, (0, 0))[0],
                partition_count=distribution.get(node.id, (0, 0))[1],
                config={},
                metrics=node_metrics,
            )
            for node, node_metrics in zip(description.nodes, metrics, strict=True)
        ]
        logger.info(f"Listed {len(brokers)} brokers")
        return brokers

    async def _broker_distribution(
        self, gateway: AdminGateway, description: ClusterDescription
    ) -> dict[int, tuple[int, int]]:
        """Estimate ``(topics, partitions)`` hosted per broker from a topic sample.

        A broker's partition counter grows once per partition replica it holds;
        its topic counter grows once per topic it holds any replica of.
        """
        try:
            names = await gateway.list_topics()
            if not names:
                return {}
            sample = self.broker_sampling.select(names)
            metadata = await gateway.fetch_topic_metadata(sample)
        except Exception as e:
            logger.warning(f"Could not calculate broker topic distribution: {e}")
            return {}

        topics = {node.id: 0 for node in description.nodes}
        partitions = {node.id: 0 for node in description.nodes}
        for topic in metadata:
            brokers_for_topic: set[int] = set()
            for partition in topic.partitions:
                for replica in partition.replicas:
                    if replica in partitions:
                        partitions[replica] += 1
                        brokers_for_topic.add(replica)
            for broker_id in brokers_for_topic:
                topics[broker_id] += 1

        return {
            broker_id: (
                self.broker_sampling.scale(topics[broker_id], len(names), len(sample)),
                self.broker_sampling.scale(partitions[broker_id], len(names), len(sample)),
            )
            for broker_id in topics
        }

    async def _broker_metrics(self, broker_id: int) -> BrokerMetrics:
        try:
            return await self.metrics.broker_metrics(broker_id)
        except Exception as e:
            logger.warning(f"Could not fetch metrics for broker {broker_id}: {e}")
            return BrokerMetrics()

    async def _topic_metrics(self, topic: str) -> TopicMetrics:
        try:
            return await self.metrics.topic_metrics(topic)
        except Exception as e:
            logger.warning(f"Could not fetch metrics for topic '{topic}': {e}")
            return TopicMetrics()

    async def _topic_configs(
        self, gateway: AdminGateway, names: list[str]
    ) -> dict[str, dict[str, str]]:
        try:
            return await gateway.describe_topic_configs(names)
        except Exception as e:
            logger.warning(f"Could not fetch topic configurations: {e}")
            return {}

    async def get_topics(self) -> list[Topic]:
        """List all topics with configuration and metrics.

        Returns:
            Topics in the order the cluster reports them

        Raises:
            NotConnectedError: If no connection is active
            KafkaOperationError: If listing topics or fetching their metadata fails
        """
        gateway = self._connection.require_gateway()
        try:
            logger.debug("Listing topics")
            names = await gateway.list_topics()
            if not names:
                return []
            metadata = await gateway.fetch_topic_metadata(names)
        except KafkaException as e:
            logger.error(f"Failed to fetch topics: {e}")
            raise KafkaOperationError(f"Failed to fetch topics: {e}") from e

        configs = await self._topic_configs(gateway, names)
        metrics = await asyncio.gather(*(self._topic_metrics(topic.name) for topic in metadata))

        topics = [
            Topic(
                name=topic.name,
                partitions=len(topic.partitions),
                replication_factor=replication_factor_of(topic),
                config=configs.get(topic.name, {}),
                metrics=topic_metrics,
                status=TopicStatus.ACTIVE,
            )
            for topic, topic_metrics in zip(metadata, metrics, strict=True)
        ]
        logger.info(f"Listed {len(topics)} topics")
        return topics

    async def get_topic_details(self, name: str) -> TopicDetail:
        """Get one topic with its partition layout.

        Args:
            name: Topic name

        Returns:
            Topic detail

        Raises:
            NotConnectedError: If no connection is active
            TopicNotFound: If the topic does not exist
            KafkaOperationError: If fetching metadata fails
        """
        gateway = self._connection.require_gateway()
        try:
            logger.debug(f"Describing topic: {name}")
            names = await gateway.list_topics()
            if name not in names:
                raise TopicNotFound(f"Topic '{name}' not found")
            metadata = await gateway.fetch_topic_metadata([name])
        except KafkaException as e:
            logger.error(f"Failed to fetch topic details for '{name}': {e}")
            raise KafkaOperationError(f"Failed to fetch topic details: {e}") from e

        topic = metadata[0]
        configs = await self._topic_configs(gateway, [name])
        topic_metrics = await self._topic_metrics(name)

        detail = TopicDetail(
            name=topic.name,
            partitions=len(topic.partitions),
            replication_factor=replication_factor_of(topic),
            config=configs.get(name, {}),
            metrics=topic_metrics,
            status=TopicStatus.ACTIVE,
            partition_details=[
                PartitionInfo(
                    partition=partition.id,
                    leader=partition.leader,
                    replicas=list(partition.replicas),
                    isr=list(partition.isr),
                )
                for partition in topic.partitions
            ],
        )
        logger.info(f"Described topic '{name}': {detail.partitions} partitions")
        return detail
