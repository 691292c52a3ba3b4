"""Client library: HTTP client, connection synchronizer, data watchers and session."""

from kafka_panel.client.api import KafkaPanelClient, get_error_message
from kafka_panel.client.connection import (
    ConnectionState,
    ConnectionSynchronizer,
    ReconciliationState,
)
from kafka_panel.client.mutations import TopicManager, TopicMutations, friendly_create_error
from kafka_panel.client.registry import ClusterRegistry
from kafka_panel.client.resources import (
    BrokersWatcher,
    OverviewWatcher,
    ResourceWatcher,
    TopicsWatcher,
)
from kafka_panel.client.session import ClientSession
from kafka_panel.client.storage import ClusterListStore, ConnectionStore

__all__ = [
    "KafkaPanelClient",
    "get_error_message",
    "ConnectionState",
    "ConnectionSynchronizer",
    "ReconciliationState",
    "ConnectionStore",
    "ClusterListStore",
    "ClusterRegistry",
    "ResourceWatcher",
    "OverviewWatcher",
    "BrokersWatcher",
    "TopicsWatcher",
    "TopicMutations",
    "TopicManager",
    "friendly_create_error",
    "ClientSession",
]
