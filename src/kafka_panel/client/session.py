"""One client session: the API client with every watcher built on it."""

import httpx
from loguru import logger

from kafka_panel.client.api import KafkaPanelClient
from kafka_panel.client.connection import ConnectionSynchronizer
from kafka_panel.client.mutations import TopicManager
from kafka_panel.client.registry import ClusterRegistry
from kafka_panel.client.resources import BrokersWatcher, OverviewWatcher
from kafka_panel.client.storage import ClusterListStore, ConnectionStore
from kafka_panel.config import ClientConfig


class ClientSession:
    """Shares one connection synchronizer between all client consumers.

    Example:
        async with ClientSession.from_config(ClientConfig()) as session:
            await session.registry.select_cluster(session.registry.clusters[0])
            print(session.brokers.data)
    """

    def __init__(
        self,
        api: KafkaPanelClient,
        connection_store: ConnectionStore,
        cluster_store: ClusterListStore,
        poll_interval: float = 0.0,
        retry_delay: float = 5.0,
    ) -> None:
        self.api = api
        self.connection = ConnectionSynchronizer(api, connection_store)
        self.overview = OverviewWatcher(
            api, self.connection, poll_interval=poll_interval, retry_delay=retry_delay
        )
        self.brokers = BrokersWatcher(
            api, self.connection, poll_interval=poll_interval, retry_delay=retry_delay
        )
        self.topics = TopicManager(
            api, self.connection, poll_interval=poll_interval, retry_delay=retry_delay
        )
        self.registry = ClusterRegistry(cluster_store, self.connection)

    @classmethod
    def from_config(
        cls, config: ClientConfig, client: httpx.AsyncClient | None = None
    ) -> "ClientSession":
        """Build a session from client settings.

        Args:
            config: Client settings
            client: Preconfigured httpx client; ``config.base_url`` and
                ``config.request_timeout`` are ignored when given
        """
        if client is None:
            api = KafkaPanelClient.from_config(config)
        else:
            api = KafkaPanelClient(client=client)
        return cls(
            api,
            ConnectionStore(config.state_file),
            ClusterListStore(config.clusters_file),
            poll_interval=config.poll_interval,
            retry_delay=config.retry_delay,
        )

    async def start(self) -> None:
        """Load saved clusters, restore the last connection and start the watchers."""
        self.registry.load()
        cluster = await self.connection.restore()
        if cluster is not None:
            logger.info(f"Session resumed on '{cluster.name}'")
        await self.overview.start()
        await self.brokers.start()
        await self.topics.start()

    async def close(self) -> None:
        """Stop every watcher and close the HTTP client if the session created it."""
        await self.overview.close()
        await self.brokers.close()
        await self.topics.close()
        self.registry.close()
        await self.api.aclose()

    async def __aenter__(self) -> "ClientSession":
        """Start the session."""
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close the session."""
        await self.close()
