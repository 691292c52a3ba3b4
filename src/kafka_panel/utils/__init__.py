"""Utility modules for the Kafka control panel."""

from kafka_panel.utils.errors import (
    ApiError,
    BusinessRuleError,
    ConnectionFailure,
    KafkaConnectionError,
    KafkaOperationError,
    KafkaPanelError,
    NotConnectedError,
    ReplicationFactorExceeded,
    TopicAlreadyExists,
    TopicNotFound,
    ValidationError,
)
from kafka_panel.utils.logger import setup_logger

__all__ = [
    "KafkaPanelError",
    "NotConnectedError",
    "ConnectionFailure",
    "KafkaConnectionError",
    "KafkaOperationError",
    "ValidationError",
    "BusinessRuleError",
    "TopicAlreadyExists",
    "TopicNotFound",
    "ReplicationFactorExceeded",
    "ApiError",
    "setup_logger",
]
