"""Validated topic lifecycle commands."""

from collections.abc import Callable, Generator
from contextlib import contextmanager
from enum import Enum
from itertools import count
from types import MappingProxyType

from confluent_kafka import KafkaException
from loguru import logger

from kafka_panel.config import KafkaConfig
from kafka_panel.models import TopicConfigUpdated, TopicCreated, TopicDeleted
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.utils.errors import (
    KafkaOperationError,
    ReplicationFactorExceeded,
    TopicAlreadyExists,
    TopicNotFound,
    ValidationError,
)
from kafka_panel.validation import (
    MSG_TOPIC_NAME_REQUIRED,
    validate_partitions,
    validate_replication_factor,
    validate_topic_name,
)


class CommandState(str, Enum):
    """Progress of a command against one topic."""

    REQUESTED = "requested"
    VALIDATING = "validating"
    EXECUTING = "executing"
    DONE = "done"
    REJECTED = "rejected"


class TopicCommandHandler:
    """Create, delete and reconfigure topics.

    All input checks run before any cluster request is sent, and existence
    is always re-read from the cluster right before the mutating request.
    """

    def __init__(self, connection: ConnectionManager, config: KafkaConfig) -> None:
        self._connection = connection
        self._operation_timeout = config.operation_timeout
        self._commands: dict[int, tuple[str, CommandState]] = {}
        self._command_ids = count()
        self._outcomes: dict[str, CommandState] = {}

    def pending(self) -> MappingProxyType[str, CommandState]:
        """Read-only snapshot of commands still in flight, keyed by topic name.

        When several commands on one topic overlap, the most recent one is shown.
        """
        return MappingProxyType(dict(self._commands.values()))

    def last_outcome(self, topic: str) -> CommandState | None:
        """Final state of the most recent finished command on ``topic``."""
        return self._outcomes.get(topic)

    @contextmanager
    def _track(self, topic: str) -> Generator[Callable[[CommandState], None], None, None]:
        command_id = next(self._command_ids)
        self._commands[command_id] = (topic, CommandState.REQUESTED)

        def advance(state: CommandState) -> None:
            self._commands[command_id] = (topic, state)

        outcome = CommandState.REJECTED
        try:
            yield advance
            outcome = CommandState.DONE
        finally:
            del self._commands[command_id]
            self._outcomes[topic] = outcome

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
    ) -> TopicCreated:
        """Create a topic once it is known to be valid and new.

        Args:
            name: Topic name
            partitions: Number of partitions
            replication_factor: Replicas per partition
            config: Optional topic configuration (e.g., retention.ms)

        Returns:
            Description of the created topic, usable as soon as this returns

        Raises:
            NotConnectedError: If no connection is active
            ValidationError: If name, partitions or replication factor are invalid
            TopicAlreadyExists: If a topic with that name exists
            ReplicationFactorExceeded: If there are fewer brokers than replicas
            KafkaOperationError: If a cluster request fails
        """
        gateway = self._connection.require_gateway()
        topic_config = config or {}

        with self._track(name) as advance:
            advance(CommandState.VALIDATING)
            validate_topic_name(name)
            validate_partitions(partitions)
            validate_replication_factor(replication_factor)

            try:
                existing = await gateway.list_topics()
                if name in existing:
                    raise TopicAlreadyExists(f"Topic '{name}' already exists")

                description = await gateway.describe_cluster()
                broker_count = len(description.nodes)
                if replication_factor > broker_count:
                    raise ReplicationFactorExceeded(
                        f"Replication factor {replication_factor} cannot exceed "
                        f"broker count {broker_count}"
                    )

                advance(CommandState.EXECUTING)
                logger.debug(
                    f"Creating topic: {name} (partitions={partitions}, rf={replication_factor})"
                )
                await gateway.create_topic(
                    name,
                    partitions,
                    replication_factor,
                    topic_config,
                    operation_timeout=self._operation_timeout,
                )
            except KafkaException as e:
                logger.error(f"Failed to create topic '{name}': {e}")
                raise KafkaOperationError(f"Failed to create topic: {e}") from e

        logger.info(
            f"Created topic '{name}': "
            f"{partitions} partitions, replication factor {replication_factor}"
        )
        return TopicCreated(
            name=name,
            partitions=partitions,
            replication_factor=replication_factor,
            config=topic_config,
        )

    async def delete_topic(self, name: str) -> TopicDeleted:
        """Permanently delete a topic.

        No confirmation happens here; callers confirm before asking.

        Raises:
            NotConnectedError: If no connection is active
            ValidationError: If the name is empty
            TopicNotFound: If the topic does not exist
            KafkaOperationError: If a cluster request fails
        """
        gateway = self._connection.require_gateway()

        with self._track(name) as advance:
            advance(CommandState.VALIDATING)
            if not name:
                raise ValidationError(MSG_TOPIC_NAME_REQUIRED, field="topicName")

            try:
                existing = await gateway.list_topics()
                if name not in existing:
                    raise TopicNotFound(f"Topic '{name}' does not exist")

                advance(CommandState.EXECUTING)
                logger.debug(f"Deleting topic: {name}")
                await gateway.delete_topic(name, operation_timeout=self._operation_timeout)
            except KafkaException as e:
                logger.error(f"Failed to delete topic '{name}': {e}")
                raise KafkaOperationError(f"Failed to delete topic: {e}") from e

        logger.info(f"Deleted topic '{name}'")
        return TopicDeleted(topic_name=name)

    async def update_topic_config(self, name: str, updates: dict[str, str]) -> TopicConfigUpdated:
        """Change configuration entries of an existing topic.

        Which keys may change is left to the cluster; its rejection comes back
        as ``KafkaOperationError``.

        Raises:
            NotConnectedError: If no connection is active
            ValidationError: If there is nothing to update
            TopicNotFound: If the topic does not exist
            KafkaOperationError: If a cluster request fails
        """
        gateway = self._connection.require_gateway()

        with self._track(name) as advance:
            advance(CommandState.VALIDATING)
            if not updates:
                raise ValidationError(
                    "At least one configuration entry is required", field="config"
                )

            try:
                existing = await gateway.list_topics()
                if name not in existing:
                    raise TopicNotFound(f"Topic '{name}' does not exist")

                advance(CommandState.EXECUTING)
                await gateway.alter_topic_config(name, updates)
            except KafkaException as e:
                logger.error(f"Failed to update configuration of topic '{name}': {e}")
                raise KafkaOperationError(f"Failed to update topic configuration: {e}") from e

        logger.info(f"Updated configuration of topic '{name}': {sorted(updates)}")
        return TopicConfigUpdated(topic_name=name, config=dict(updates))
