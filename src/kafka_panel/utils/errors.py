"""Custom exceptions for the Kafka control panel."""

from enum import Enum
from typing import Any


class KafkaPanelError(Exception):
    """Base exception for all control panel errors."""


class NotConnectedError(KafkaPanelError):
    """Raised when an operation needs a cluster connection and none is active."""

    def __init__(self, message: str = "Not connected to Kafka cluster") -> None:
        super().__init__(message)


class ConnectionFailure(str, Enum):
    """User-facing categories for failed connection attempts."""

    REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    COORDINATOR_UNAVAILABLE = "coordinator_unavailable"
    BROKER_UNAVAILABLE = "broker_unavailable"
    UNKNOWN = "unknown"


class KafkaConnectionError(KafkaPanelError):
    """Raised when unable to connect to Kafka cluster."""

    def __init__(self, message: str, category: ConnectionFailure = ConnectionFailure.UNKNOWN):
        super().__init__(message)
        self.category = category


class KafkaOperationError(KafkaPanelError):
    """Raised when a Kafka operation fails."""


class ValidationError(KafkaPanelError):
    """Raised when input validation fails before any cluster call.

    Attributes:
        field: Name of the offending input field (wire name)
        problems: Every violated field as ``{"field": ..., "message": ...}``
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        problems: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        if problems is None:
            problems = [{"field": field or "", "message": message}]
        self.problems = problems


class BusinessRuleError(KafkaPanelError):
    """Raised when the cluster state rules out an otherwise valid request."""


class TopicAlreadyExists(BusinessRuleError):  # noqa: N818
    """Raised when creating a topic whose name is taken."""


class TopicNotFound(BusinessRuleError):  # noqa: N818
    """Raised when a topic is not found."""


class ReplicationFactorExceeded(BusinessRuleError):  # noqa: N818
    """Raised when the replication factor is larger than the broker count."""


class ApiError(KafkaPanelError):
    """Raised by the HTTP client when the server answers with a failure envelope.

    ``status`` is 0 when the request never produced an HTTP response.
    """

    def __init__(self, message: str, status: int, details: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details
