"""HTTP API for the Kafka control panel."""

from kafka_panel.api.app import create_app

__all__ = ["create_app"]
