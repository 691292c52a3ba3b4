"""Saved cluster configurations the operator can switch between."""

import time
from uuid import uuid4

from loguru import logger

from kafka_panel.client.connection import ConnectionState, ConnectionSynchronizer
from kafka_panel.client.observable import Observable
from kafka_panel.client.storage import ClusterListStore
from kafka_panel.models import ClusterConnection, ConnectionStatus, SavedClusters
from kafka_panel.utils.errors import ValidationError
from kafka_panel.validation import MSG_BOOTSTRAP_REQUIRED

MSG_CLUSTER_NAME_REQUIRED = "Cluster name is required"
MSG_LOAD_FAILED = "Failed to load saved clusters"
MSG_SAVE_FAILED = "Failed to save cluster configuration"


def new_cluster_id() -> str:
    """Return a fresh ID for a saved cluster."""
    return f"cluster-{int(time.time() * 1000)}-{uuid4().hex[:9]}"


class ClusterRegistry(Observable["ClusterRegistry"]):
    """Persisted list of clusters plus the one currently selected.

    Connection changes are ignored until ``load()`` has run, so a connection
    restored at startup cannot overwrite the saved list.
    """

    def __init__(self, store: ClusterListStore, connection: ConnectionSynchronizer) -> None:
        super().__init__()
        self._store = store
        self._connection = connection

        self.clusters: list[ClusterConnection] = []
        self.selected: ClusterConnection | None = None
        self.is_loading = True
        self.error: str | None = None

        self._connected_id: str | None = None
        self._unsubscribe = connection.subscribe(self._on_connection_change)

    def find(self, cluster_id: str) -> ClusterConnection | None:
        """Saved cluster with ``cluster_id``, if any."""
        return next((c for c in self.clusters if c.id == cluster_id), None)

    def load(self) -> None:
        """Read the saved clusters, then catch up with the current connection."""
        self.is_loading = True
        self.error = None
        self._emit(self)
        try:
            saved = self._store.load()
        except (OSError, ValueError) as e:
            logger.error(f"Error loading clusters from {self._store.path}: {e}")
            saved = SavedClusters()
            self.error = MSG_LOAD_FAILED

        self.clusters = list(saved.clusters)
        self.selected = self.find(saved.selected_id) if saved.selected_id else None
        self.is_loading = False
        self._connected_id = None
        self._on_connection_change(self._connection.state)
        self._emit(self)

    def add_cluster(self, name: str, bootstrap_servers: str) -> ClusterConnection:
        """Save a new cluster and select it.

        Raises:
            ValidationError: If a field is blank or the name is already taken
        """
        self.error = None
        name = name.strip()
        bootstrap_servers = bootstrap_servers.strip()
        if not name:
            self._reject(MSG_CLUSTER_NAME_REQUIRED, "name")
        if not bootstrap_servers:
            self._reject(MSG_BOOTSTRAP_REQUIRED, "bootstrapServers")
        if any(c.name.lower() == name.lower() for c in self.clusters):
            self._reject(f'A cluster named "{name}" already exists', "name")

        cluster = ClusterConnection(
            id=new_cluster_id(),
            name=name,
            bootstrap_servers=bootstrap_servers,
            status=ConnectionStatus.DISCONNECTED,
        )
        self.clusters.append(cluster)
        self.selected = cluster
        self._save()
        logger.info(f"Saved cluster '{name}' ({bootstrap_servers})")
        self._emit(self)
        return cluster

    def remove_cluster(self, cluster_id: str) -> None:
        """Forget a saved cluster; clears the selection if it was selected."""
        self.error = None
        self.clusters = [c for c in self.clusters if c.id != cluster_id]
        if self.selected is not None and self.selected.id == cluster_id:
            self.selected = None
        self._save()
        self._emit(self)

    async def select_cluster(self, cluster: ClusterConnection) -> None:
        """Select ``cluster`` and connect to it.

        Never raises; a failed connect sets ``error``.
        """
        self.error = None
        self.selected = cluster
        self._save()
        self._emit(self)

        await self._connection.connect(cluster.name, cluster.bootstrap_servers)
        if self._connection.state.connection_error is not None:
            logger.error(
                f"Failed to connect to selected cluster '{cluster.name}': "
                f"{self._connection.state.connection_error}"
            )
            self.error = f"Failed to connect to {cluster.name}"
            self._emit(self)

    async def disconnect_cluster(self) -> None:
        """Disconnect from the current cluster."""
        await self._connection.disconnect()

    def clear_error(self) -> None:
        """Forget the last error."""
        self.error = None
        self._emit(self)

    def close(self) -> None:
        """Stop following the connection."""
        self._unsubscribe()

    def _on_connection_change(self, state: ConnectionState) -> None:
        if self.is_loading:
            return
        connected = state.cluster if state.is_connected else None
        connected_id = connected.id if connected is not None else None
        if connected_id == self._connected_id:
            return
        self._connected_id = connected_id

        if connected is None:
            if self.selected is not None:
                self.selected = None
                self._save()
                self._emit(self)
            return

        match = next(
            (
                c
                for c in self.clusters
                if c.bootstrap_servers == connected.bootstrap_servers or c.name == connected.name
            ),
            None,
        )
        if match is None:
            match = connected.model_copy(update={"id": new_cluster_id()})
            self.clusters.append(match)
            logger.info(f"Added connected cluster '{match.name}' to saved clusters")
        self.selected = match
        self._save()
        self._emit(self)

    def _reject(self, message: str, field: str) -> None:
        self.error = message
        self._emit(self)
        raise ValidationError(message, field=field)

    def _save(self) -> None:
        saved = SavedClusters(
            clusters=self.clusters,
            selected_id=self.selected.id if self.selected is not None else None,
        )
        try:
            self._store.save(saved)
        except OSError as e:
            logger.error(f"Error saving clusters to {self._store.path}: {e}")
            self.error = MSG_SAVE_FAILED
