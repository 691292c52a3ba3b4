"""Client-side connection state, persisted and reconciled with the server."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any
from uuid import uuid4

from loguru import logger

from kafka_panel.client.api import KafkaPanelClient, get_error_message
from kafka_panel.client.observable import Observable
from kafka_panel.client.storage import ConnectionStore
from kafka_panel.models import ClusterConnection, ConnectionStatus
from kafka_panel.utils.errors import ApiError


class ReconciliationState(str, Enum):
    """How far the persisted connection record has been checked against the server.

    NO_RECORD: nothing persisted, or the record was discarded
    PENDING: a record was found and the server has not answered yet
    VERIFIED: the server confirmed an active connection
    """

    NO_RECORD = "no_record"
    PENDING = "pending"
    VERIFIED = "verified"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot handed to listeners on every change."""

    cluster: ClusterConnection | None = None
    is_connecting: bool = False
    connection_error: str | None = None
    reconciliation: ReconciliationState = ReconciliationState.NO_RECORD

    @property
    def is_connected(self) -> bool:
        """Whether the client believes a connection is established."""
        return self.cluster is not None and self.cluster.status == ConnectionStatus.CONNECTED


class ConnectionSynchronizer(Observable[ConnectionState]):
    """Process-wide connection belief shared by every client consumer.

    ``connect`` is not guarded against concurrent calls; callers must not
    start a second connect while one is in flight.
    """

    def __init__(self, api: KafkaPanelClient, store: ConnectionStore) -> None:
        super().__init__()
        self._api = api
        self._store = store
        self._state = ConnectionState()

    @property
    def state(self) -> ConnectionState:
        """Current snapshot."""
        return self._state

    @property
    def cluster(self) -> ClusterConnection | None:
        """The cluster believed connected, if any."""
        return self._state.cluster

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self._emit(self._state)

    async def connect(self, name: str, bootstrap_servers: str) -> None:
        """Connect through the server and persist the result.

        Failures do not raise; they land in ``state.connection_error`` and
        clear the cluster.
        """
        self._set(is_connecting=True, connection_error=None)
        try:
            info = await self._api.connect(name, bootstrap_servers)
        except ApiError as e:
            message = get_error_message(e)
            logger.warning(f"Failed to connect to '{name}': {message}")
            self._set(cluster=None, is_connecting=False, connection_error=message)
            return

        cluster = ClusterConnection(
            id=info.id or str(uuid4()),
            name=name,
            bootstrap_servers=bootstrap_servers,
            status=ConnectionStatus.CONNECTED,
            version=info.version,
            controller_id=info.controller_id,
            cluster_id=info.cluster_id,
        )
        try:
            self._store.save(cluster)
        except OSError as e:
            logger.warning(f"Failed to persist connection to '{name}': {e}")
        self._set(
            cluster=cluster,
            is_connecting=False,
            reconciliation=ReconciliationState.VERIFIED,
        )
        logger.info(f"Connected to '{name}' at {bootstrap_servers}")

    async def disconnect(self) -> None:
        """Disconnect; local state is cleared even if the server call fails."""
        try:
            await self._api.disconnect()
        except ApiError as e:
            logger.error(f"Error disconnecting from Kafka: {e}")
        finally:
            self._forget()
            self._set(
                cluster=None,
                connection_error=None,
                reconciliation=ReconciliationState.NO_RECORD,
            )

    def clear_error(self) -> None:
        """Forget the last connection error."""
        self._set(connection_error=None)

    async def restore(self) -> ClusterConnection | None:
        """Restore the persisted connection if the server still holds one.

        The server's bootstrap server string replaces the persisted one, which
        may be stale. When the server has no connection, or anything fails,
        the record is discarded.

        Returns:
            The restored cluster, or None
        """
        try:
            saved = self._store.load()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to restore connection: {e}")
            self._discard()
            return None

        if saved is None:
            self._set(reconciliation=ReconciliationState.NO_RECORD)
            return None

        self._set(reconciliation=ReconciliationState.PENDING)
        try:
            status = await self._api.get_connection_status()
        except ApiError as e:
            logger.warning(f"Failed to restore connection: {e}")
            self._discard()
            return None

        connection = status.get("connection") if status and status.get("connected") else None
        if not connection:
            logger.info(f"Discarding stale connection record for '{saved.name}'")
            self._discard()
            return None

        cluster = saved.model_copy(
            update={
                "bootstrap_servers": connection.get("brokers", saved.bootstrap_servers),
                "status": ConnectionStatus.CONNECTED,
            }
        )
        self._set(cluster=cluster, reconciliation=ReconciliationState.VERIFIED)
        logger.info(f"Restored connection '{cluster.name}' at {cluster.bootstrap_servers}")
        return cluster

    def _forget(self) -> None:
        try:
            self._store.clear()
        except OSError as e:
            logger.warning(f"Failed to remove connection record: {e}")

    def _discard(self) -> None:
        self._forget()
        self._set(cluster=None, reconciliation=ReconciliationState.NO_RECORD)
