"""Durable storage for the last known connection and the saved cluster list."""

from pathlib import Path

from loguru import logger

from kafka_panel.models import ClusterConnection, SavedClusters


class ConnectionStore:
    """Persists one ``ClusterConnection`` as a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> ClusterConnection | None:
        """Read the stored record.

        Returns:
            The stored connection, or None when nothing is stored

        Raises:
            OSError: If the file exists but cannot be read
            ValueError: If the file does not hold a valid record
        """
        if not self.path.exists():
            return None
        return ClusterConnection.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, cluster: ClusterConnection) -> None:
        """Replace the stored record."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            cluster.model_dump_json(by_alias=True, exclude_none=True), encoding="utf-8"
        )
        logger.debug(f"Saved connection '{cluster.name}' to {self.path}")

    def clear(self) -> None:
        """Remove the stored record, if any."""
        self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"ConnectionStore(path={self.path})"


class ClusterListStore:
    """Persists the saved clusters and the selected cluster ID as one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> SavedClusters:
        """Read the saved clusters; an absent file means none are saved.

        Raises:
            OSError: If the file exists but cannot be read
            ValueError: If the file does not hold a valid cluster list
        """
        if not self.path.exists():
            return SavedClusters()
        return SavedClusters.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, saved: SavedClusters) -> None:
        """Replace the saved clusters."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            saved.model_dump_json(by_alias=True, exclude_none=True), encoding="utf-8"
        )
        logger.debug(f"Saved {len(saved.clusters)} cluster(s) to {self.path}")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"ClusterListStore(path={self.path})"
