"""Server-side services: connection ownership, aggregation and commands."""

from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager, classify_connection_error
from kafka_panel.services.metrics import MetricsProvider, SimulatedMetricsProvider
from kafka_panel.services.sampling import SamplingStrategy, round_half_up
from kafka_panel.services.topics import CommandState, TopicCommandHandler

__all__ = [
    "ConnectionManager",
    "classify_connection_error",
    "MetadataAggregator",
    "MetricsProvider",
    "SimulatedMetricsProvider",
    "SamplingStrategy",
    "round_half_up",
    "TopicCommandHandler",
    "CommandState",
]
