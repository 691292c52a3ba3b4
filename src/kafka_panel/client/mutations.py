"""Topic create/delete commands with their own loading and error state."""

from loguru import logger

from kafka_panel.client.api import KafkaPanelClient, get_error_message
from kafka_panel.client.connection import ConnectionSynchronizer
from kafka_panel.client.observable import Observable
from kafka_panel.client.resources import TopicsWatcher
from kafka_panel.models import TopicCreated, TopicDeleted
from kafka_panel.utils.errors import ApiError

# Broker error text that means the requested replica placement is impossible
_UNHOSTED_PARTITION = "does not host this topic-partition"
_UNHOSTED_PARTITION_MESSAGE = (
    "Kafka cluster rejected the request: insufficient replication or invalid broker "
    "for partition. Check replication factor and broker availability."
)


def friendly_create_error(message: str) -> str:
    """Reword known broker errors into an actionable message."""
    if _UNHOSTED_PARTITION in message:
        return _UNHOSTED_PARTITION_MESSAGE
    return message


class TopicMutations(Observable["TopicMutations"]):
    """Create and delete topics, tracking progress separately from fetches.

    Creation uses one flag for all topics. Deletion tracks every topic name
    with a request in flight, so deleting one topic does not mark others busy.
    """

    def __init__(self, api: KafkaPanelClient) -> None:
        super().__init__()
        self._api = api
        self.is_creating = False
        self.create_error: str | None = None
        self.deleting: set[str] = set()
        self.delete_error: str | None = None

    def is_deleting(self, topic_name: str) -> bool:
        """Whether a delete request for ``topic_name`` is in flight."""
        return topic_name in self.deleting

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
    ) -> TopicCreated:
        """Create a topic.

        Raises:
            ApiError: With the (possibly reworded) server error
        """
        self.is_creating = True
        self.create_error = None
        self._emit(self)
        try:
            created = await self._api.create_topic(name, partitions, replication_factor, config)
            logger.info(f"Topic '{name}' created successfully")
            return created
        except ApiError as e:
            message = friendly_create_error(get_error_message(e))
            logger.error(f"Topic creation failed: {message}")
            self.create_error = message
            raise ApiError(message, e.status, e.details) from e
        finally:
            self.is_creating = False
            self._emit(self)

    async def delete_topic(self, topic_name: str) -> TopicDeleted:
        """Delete a topic. Confirm with the user before calling.

        Raises:
            ApiError: With the server error
        """
        self.deleting.add(topic_name)
        self.delete_error = None
        self._emit(self)
        try:
            deleted = await self._api.delete_topic(topic_name)
            logger.info(f"Topic '{topic_name}' deleted successfully")
            return deleted
        except ApiError as e:
            message = get_error_message(e)
            logger.error(f"Topic deletion failed: {message}")
            self.delete_error = message
            raise
        finally:
            self.deleting.discard(topic_name)
            self._emit(self)


class TopicManager:
    """Topic list plus mutations; the list is refreshed after each success."""

    def __init__(
        self,
        api: KafkaPanelClient,
        connection: ConnectionSynchronizer,
        poll_interval: float = 0.0,
        retry_delay: float = 5.0,
    ) -> None:
        self.topics = TopicsWatcher(
            api, connection, poll_interval=poll_interval, retry_delay=retry_delay
        )
        self.mutations = TopicMutations(api)

    async def start(self) -> None:
        """Start following the connection."""
        await self.topics.start()

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
    ) -> TopicCreated:
        """Create a topic, then refresh the list."""
        created = await self.mutations.create_topic(name, partitions, replication_factor, config)
        await self.topics.refresh()
        return created

    async def delete_topic(self, topic_name: str) -> TopicDeleted:
        """Delete a topic, then refresh the list."""
        deleted = await self.mutations.delete_topic(topic_name)
        await self.topics.refresh()
        return deleted

    async def close(self) -> None:
        """Stop the topic watcher."""
        await self.topics.close()
