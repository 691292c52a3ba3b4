"""FastAPI dependencies resolving the services owned by the application."""

from fastapi import Request

from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.topics import TopicCommandHandler


def get_connection(request: Request) -> ConnectionManager:
    """Return the application's connection manager."""
    return request.app.state.connection


def get_aggregator(request: Request) -> MetadataAggregator:
    """Return the application's metadata aggregator."""
    return request.app.state.aggregator


def get_commands(request: Request) -> TopicCommandHandler:
    """Return the application's topic command handler."""
    return request.app.state.commands
