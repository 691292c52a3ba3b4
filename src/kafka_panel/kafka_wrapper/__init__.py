"""Kafka admin protocol binding."""

from kafka_panel.kafka_wrapper.gateway import (
    AdminGateway,
    ClusterDescription,
    NodeInfo,
    PartitionMetadata,
    TopicMetadata,
)

__all__ = [
    "AdminGateway",
    "ClusterDescription",
    "NodeInfo",
    "PartitionMetadata",
    "TopicMetadata",
]
