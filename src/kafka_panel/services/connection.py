"""Ownership of the single administrative cluster connection."""

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger

from kafka_panel.config import KafkaConfig
from kafka_panel.kafka_wrapper.gateway import AdminGateway
from kafka_panel.models import ConnectionInfo
from kafka_panel.utils.errors import ConnectionFailure, KafkaConnectionError, NotConnectedError
from kafka_panel.validation import split_bootstrap_servers

GatewayFactory = Callable[[dict[str, Any], float], AdminGateway]

# Substrings of raw client errors, checked in order
_FAILURE_INDICATORS: tuple[tuple[ConnectionFailure, tuple[str, ...]], ...] = (
    (ConnectionFailure.REFUSED, ("econnrefused", "connection refused")),
    (ConnectionFailure.TIMEOUT, ("timeout", "timed out", "_timed_out")),
    (
        ConnectionFailure.COORDINATOR_UNAVAILABLE,
        ("coordinator not available", "coordinator_not_available"),
    ),
    (
        ConnectionFailure.BROKER_UNAVAILABLE,
        (
            "broker not available",
            "broker_not_available",
            "all brokers down",
            "broker transport failure",
            "_transport",
        ),
    ),
)

_FAILURE_MESSAGES: dict[ConnectionFailure, str] = {
    ConnectionFailure.REFUSED: (
        "Cannot connect to Kafka brokers. "
        "Please verify Kafka is running and bootstrap servers are correct."
    ),
    ConnectionFailure.TIMEOUT: (
        "Connection timeout. Kafka brokers may be unreachable or overloaded."
    ),
    ConnectionFailure.COORDINATOR_UNAVAILABLE: (
        "Kafka coordinator not available. The cluster may be starting up."
    ),
    ConnectionFailure.BROKER_UNAVAILABLE: (
        "Kafka brokers are not available. Check if your Kafka cluster is running."
    ),
}


def classify_connection_error(error: Exception) -> tuple[ConnectionFailure, str]:
    """Translate a raw client error into a category and a user-facing message.

    Args:
        error: The exception raised while opening or verifying the connection

    Returns:
        Tuple of failure category and message
    """
    raw = str(error)
    lowered = raw.lower()
    for category, indicators in _FAILURE_INDICATORS:
        if any(indicator in lowered for indicator in indicators):
            return category, _FAILURE_MESSAGES[category]
    return ConnectionFailure.UNKNOWN, f"Kafka connection failed: {raw}"


class ConnectionManager:
    """Owns at most one live admin gateway.

    ``connect`` and ``disconnect`` are serialized by a lock so an overlapping
    connect can never close a gateway another connect has just installed.
    Reads (``is_active``, ``connection_info``, ``require_gateway``) never wait.
    """

    def __init__(self, config: KafkaConfig, gateway_factory: GatewayFactory | None = None) -> None:
        """Initialize the manager without connecting.

        Args:
            config: Kafka configuration (timeouts, security, auto-connect target)
            gateway_factory: Builds a gateway from a librdkafka config dict and a
                request timeout in seconds; defaults to ``AdminGateway``

        """
        self.config = config
        self._gateway_factory: GatewayFactory = gateway_factory or AdminGateway
        self._gateway: AdminGateway | None = None
        self._info: ConnectionInfo | None = None
        self._lock = asyncio.Lock()

    def build_client_config(self, servers: list[str], client_id: str) -> dict[str, Any]:
        """Build confluent-kafka configuration dict.

        Args:
            servers: Ordered bootstrap ``host:port`` list
            client_id: Client identifier sent to the brokers

        Returns:
            Configuration dictionary for the AdminClient

        """
        config: dict[str, Any] = {
            "bootstrap.servers": ",".join(servers),
            "client.id": client_id,
            "socket.connection.setup.timeout.ms": self.config.connection_timeout_ms,
            "socket.timeout.ms": self.config.request_timeout_ms,
            "retry.backoff.ms": self.config.retry_backoff_ms,
            "retry.backoff.max.ms": max(
                self.config.retry_backoff_ms, self.config.retry_backoff_max_ms
            ),
        }

        # Security protocol
        config["security.protocol"] = self.config.security_protocol

        # SASL Authentication
        if self.config.sasl_mechanism:
            config["sasl.mechanism"] = self.config.sasl_mechanism
            config["sasl.username"] = self.config.sasl_username
            if self.config.sasl_password:
                config["sasl.password"] = self.config.sasl_password.get_secret_value()

        # SSL/TLS
        if self.config.ssl_ca_location:
            config["ssl.ca.location"] = str(self.config.ssl_ca_location)
        if self.config.ssl_certificate_location:
            config["ssl.certificate.location"] = str(self.config.ssl_certificate_location)
        if self.config.ssl_key_location:
            config["ssl.key.location"] = str(self.config.ssl_key_location)
        if self.config.ssl_key_password:
            config["ssl.key.password"] = self.config.ssl_key_password.get_secret_value()

        return config

    async def connect(self, bootstrap_servers: str, client_id: str | None = None) -> ConnectionInfo:
        """Open and verify a connection, replacing any existing one.

        Args:
            bootstrap_servers: Comma-separated ``host:port`` list
            client_id: Client identifier; defaults to the configured one

        Returns:
            Description of the new connection

        Raises:
            KafkaConnectionError: If the connection cannot be opened or verified

        """
        servers = split_bootstrap_servers(bootstrap_servers)
        client_id = client_id or self.config.client_id

        async with self._lock:
            self._teardown()

            logger.info(f"Connecting to Kafka cluster at {','.join(servers)}")
            gateway: AdminGateway | None = None
            try:
                gateway = self._gateway_factory(
                    self.build_client_config(servers, client_id),
                    self.config.request_timeout_ms / 1000,
                )
                description = await gateway.describe_cluster()
            except Exception as e:
                if gateway is not None:
                    gateway.close()
                category, message = classify_connection_error(e)
                logger.error(f"Failed to connect to Kafka cluster ({category.value}): {e}")
                raise KafkaConnectionError(message, category) from e

            self._gateway = gateway
            self._info = ConnectionInfo(
                brokers=",".join(servers),
                client_id=client_id,
                cluster_id=description.cluster_id,
                controller_id=description.controller_id,
            )
            logger.success(
                f"Connected to Kafka cluster {description.cluster_id}: "
                f"{len(description.nodes)} brokers"
            )
            return self._info

    async def disconnect(self) -> None:
        """Release the connection. Safe to call when not connected."""
        async with self._lock:
            self._teardown()

    def _teardown(self) -> None:
        gateway = self._gateway
        self._gateway = None
        self._info = None
        if gateway is None:
            return
        try:
            gateway.close()
            logger.info("Disconnected from Kafka cluster")
        except Exception as e:
            logger.error(f"Error disconnecting from Kafka: {e}")

    def is_active(self) -> bool:
        """Whether a verified connection is open."""
        return self._gateway is not None and not self._gateway.closed

    def connection_info(self) -> ConnectionInfo | None:
        """Describe the active connection, or None."""
        return self._info if self.is_active() else None

    def require_gateway(self) -> AdminGateway:
        """Return the live gateway.

        Raises:
            NotConnectedError: If no connection is active

        """
        if self._gateway is None or self._gateway.closed:
            raise NotConnectedError()
        return self._gateway

    async def initialize(self) -> None:
        """Auto-connect from configuration, logging instead of raising on failure."""
        if not self.config.bootstrap_servers:
            logger.debug("KAFKA_BOOTSTRAP_SERVERS not set, waiting for manual connection")
            return
        try:
            logger.info("Auto-connecting to Kafka using environment configuration")
            await self.connect(self.config.bootstrap_servers, self.config.client_id)
        except KafkaConnectionError as e:
            logger.warning(f"Auto-connect failed - manual connection required: {e}")

    def __repr__(self) -> str:
        """Return string representation."""
        status = "connected" if self.is_active() else "disconnected"
        brokers = self._info.brokers if self._info else None
        return f"ConnectionManager(brokers={brokers}, status={status})"
