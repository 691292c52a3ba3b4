"""Control panel for Kafka clusters: admin service, HTTP API and client synchronizer."""

from kafka_panel.version import __version__

__all__ = ["__version__"]
