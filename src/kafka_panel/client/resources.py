"""Per-resource data watchers that follow the connection and poll the API."""

import asyncio
import contextlib
from datetime import UTC, datetime
from typing import Generic, TypeVar

from loguru import logger

from kafka_panel.client.api import KafkaPanelClient, get_error_message
from kafka_panel.client.connection import ConnectionState, ConnectionSynchronizer
from kafka_panel.client.observable import Observable
from kafka_panel.models import Broker, ClusterOverview, Topic
from kafka_panel.utils.errors import ApiError

T = TypeVar("T")

NOT_CONNECTED = "Not connected to Kafka cluster"


class ResourceWatcher(Observable["ResourceWatcher[T]"], Generic[T]):
    """Keeps one resource fresh while the client believes it is connected.

    Fetches when a connection appears and clears when it goes away. With
    ``poll_interval`` set, refetches on a fixed interval, skipping ticks while
    a fetch is running or an error is outstanding. A failed fetch schedules
    one retry after ``retry_delay`` seconds; a failed retry does not schedule
    another, so the error stays until the next manual ``refresh()``.
    """

    resource = "resource"
    clear_on_error = False

    def __init__(
        self,
        api: KafkaPanelClient,
        connection: ConnectionSynchronizer,
        poll_interval: float = 0.0,
        retry_delay: float = 5.0,
        retry_on_error: bool = True,
    ) -> None:
        super().__init__()
        self._api = api
        self._connection = connection
        self.poll_interval = poll_interval
        self.retry_delay = retry_delay
        self.retry_on_error = retry_on_error

        self.data: T = self.empty()
        self.is_loading = False
        self.error: str | None = None

        self._cluster_id: str | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._unsubscribe = connection.subscribe(self._on_connection_change)

    def empty(self) -> T:
        """Value held while disconnected."""
        raise NotImplementedError

    async def fetch(self) -> T:
        """Load the resource from the API."""
        raise NotImplementedError

    @property
    def is_connected(self) -> bool:
        """Whether the shared connection is currently believed active."""
        return self._connection.state.is_connected

    async def start(self) -> None:
        """Fetch immediately if already connected, then follow the connection."""
        self._on_connection_change(self._connection.state)
        await self.settle()

    async def settle(self) -> None:
        """Wait for the fetch triggered by the last connection change."""
        if self._fetch_task is not None:
            await self._fetch_task

    def _on_connection_change(self, state: ConnectionState) -> None:
        cluster_id = state.cluster.id if state.is_connected and state.cluster else None
        if cluster_id == self._cluster_id:
            return
        self._cluster_id = cluster_id
        self._cancel_timers()

        if cluster_id is None:
            self._reset()
            return

        loop = asyncio.get_running_loop()
        self._fetch_task = loop.create_task(self.refresh())
        if self.poll_interval > 0:
            self._poll_task = loop.create_task(self._poll())

    async def refresh(self) -> None:
        """Fetch now, regardless of polling."""
        await self._load(retry_allowed=True)

    async def _load(self, retry_allowed: bool) -> None:
        if not self.is_connected:
            self.data = self.empty()
            self._emit(self)
            return

        cluster_id = self._cluster_id
        self.is_loading = True
        self.error = None
        self._emit(self)
        try:
            data = await self.fetch()
            # Connection changed while fetching; the result belongs to the old one
            if cluster_id != self._cluster_id:
                return
            self.data = data
            self._on_success()
        except ApiError as e:
            if cluster_id != self._cluster_id:
                return
            self.error = get_error_message(e)
            logger.error(f"Failed to fetch {self.resource}: {self.error}")
            if self.clear_on_error:
                self.data = self.empty()
            if retry_allowed:
                self._schedule_retry()
        finally:
            # A newer fetch for the current cluster owns the loading flag
            if cluster_id == self._cluster_id:
                self.is_loading = False
                self._emit(self)

    def _on_success(self) -> None:
        """Hook for subclasses run after a successful fetch."""

    def _schedule_retry(self) -> None:
        if not self.retry_on_error or not self.is_connected:
            return
        if self._retry_task is not None and not self._retry_task.done():
            return
        self._retry_task = asyncio.get_running_loop().create_task(self._retry())

    async def _retry(self) -> None:
        await asyncio.sleep(self.retry_delay)
        if self.is_connected:
            logger.info(f"Retrying {self.resource} fetch after error")
            await self._load(retry_allowed=False)

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            if self.is_loading or self.error is not None:
                continue
            await self._load(retry_allowed=True)

    def clear_error(self) -> None:
        """Forget the last fetch error."""
        self.error = None
        self._emit(self)

    def _reset(self) -> None:
        self.data = self.empty()
        self.error = None
        self.is_loading = False
        self._emit(self)

    def _cancel_timers(self) -> None:
        for task in (self._poll_task, self._retry_task):
            if task is not None and not task.done():
                task.cancel()
        self._poll_task = None
        self._retry_task = None

    async def close(self) -> None:
        """Stop following the connection and cancel every timer."""
        self._unsubscribe()
        tasks = [t for t in (self._fetch_task, self._poll_task, self._retry_task) if t]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._fetch_task = self._poll_task = self._retry_task = None


class OverviewWatcher(ResourceWatcher[ClusterOverview | None]):
    """Cluster overview."""

    resource = "cluster overview"

    def empty(self) -> ClusterOverview | None:
        """No overview while disconnected."""
        return None

    async def fetch(self) -> ClusterOverview | None:
        """Load the overview."""
        return await self._api.get_cluster_overview()


class BrokersWatcher(ResourceWatcher[list[Broker]]):
    """Broker list. A failed fetch clears the list."""

    resource = "brokers"
    clear_on_error = True

    def empty(self) -> list[Broker]:
        """No brokers while disconnected."""
        return []

    async def fetch(self) -> list[Broker]:
        """Load the brokers."""
        return await self._api.get_brokers()


class TopicsWatcher(ResourceWatcher[list[Topic]]):
    """Topic list with the time of the last successful fetch."""

    resource = "topics"
    last_fetch: datetime | None = None

    def empty(self) -> list[Topic]:
        """No topics while disconnected."""
        return []

    async def fetch(self) -> list[Topic]:
        """Load the topics."""
        return await self._api.get_topics()

    async def refresh(self) -> None:
        """Fetch now; while disconnected, report that instead."""
        if not self.is_connected:
            self.data = []
            self.error = NOT_CONNECTED
            self._emit(self)
            return
        await super().refresh()

    def _on_success(self) -> None:
        self.last_fetch = datetime.now(UTC)

    def _reset(self) -> None:
        self.last_fetch = None
        super()._reset()
