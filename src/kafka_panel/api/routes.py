"""Request handlers for the ``/kafka`` API.

Every handler runs the same pipeline: connection guard, JSON parsing,
schema validation, then delegation. Domain errors map to status tiers:
validation 400, not connected 401, cluster rejected the command 422,
cluster unreachable on reads 503. Anything else is logged and answered
with a generic 500.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar
from uuid import uuid4

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from kafka_panel.api.dependencies import get_aggregator, get_commands, get_connection
from kafka_panel.api.envelope import fail, ok, timestamp
from kafka_panel.models import (
    ClusterConnection,
    ClusterOverview,
    ConnectionStatus,
    ConnectRequest,
    CreateTopicRequest,
    DeleteTopicRequest,
    UpdateTopicConfigRequest,
    WireModel,
)
from kafka_panel.services.aggregator import MetadataAggregator
from kafka_panel.services.connection import ConnectionManager
from kafka_panel.services.sampling import round_half_up
from kafka_panel.services.topics import TopicCommandHandler
from kafka_panel.utils.errors import (
    KafkaConnectionError,
    KafkaOperationError,
    KafkaPanelError,
    NotConnectedError,
    TopicNotFound,
    ValidationError,
)
from kafka_panel.version import __version__

ConnectionDep = Annotated[ConnectionManager, Depends(get_connection)]
AggregatorDep = Annotated[MetadataAggregator, Depends(get_aggregator)]
CommandsDep = Annotated[TopicCommandHandler, Depends(get_commands)]

ModelT = TypeVar("ModelT", bound=WireModel)
Handler = Callable[..., Awaitable[JSONResponse]]

NOT_CONNECTED = "Not connected to Kafka cluster"
INTERNAL_ERROR = "Internal server error"

router = APIRouter(prefix="/kafka", tags=["kafka"])
health_router = APIRouter(tags=["health"])


def internal_error(
    error: str = INTERNAL_ERROR, message: str | None = None
) -> Callable[[Handler], Handler]:
    """Answer unexpected exceptions with a generic 500 envelope."""

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> JSONResponse:
            try:
                return await func(*args, **kwargs)
            except Exception:
                logger.exception(f"Unexpected error in {func.__name__}")
                return fail(error, 500, message=message)

        return wrapper

    return decorator


def not_connected(message: str, **extra: Any) -> JSONResponse:
    """401 envelope that sends the user to the connect flow."""
    return fail(NOT_CONNECTED, 401, message=message, **extra)


def bad_request(exc: ValidationError) -> JSONResponse:
    """400 envelope listing every violated field."""
    return fail(str(exc), 400, details=exc.problems or None)


async def parse_body(request: Request, model: type[ModelT], invalid_message: str) -> ModelT:
    """Parse and validate a JSON body.

    Raises:
        ValidationError: If the body is not JSON or does not fit ``model``
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON in request body", problems=[]) from e

    try:
        return model.model_validate(body)
    except pydantic.ValidationError as e:
        problems = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        raise ValidationError(invalid_message, problems=problems) from e


def average(values: list[int]) -> int:
    """Half-up rounded mean, 0 for no values."""
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


# Connection


@router.post("/connect")
@internal_error(message="An unexpected error occurred while connecting to Kafka")
async def connect(request: Request, connection: ConnectionDep) -> JSONResponse:
    """Connect to the cluster given in the body, replacing any connection."""
    try:
        form = await parse_body(request, ConnectRequest, "Invalid connection parameters")
    except ValidationError as e:
        return bad_request(e)

    try:
        info = await connection.connect(form.bootstrap_servers)
    except KafkaConnectionError as e:
        return fail(
            str(e),
            422,
            details={"bootstrapServers": form.bootstrap_servers, "timestamp": timestamp()},
        )

    cluster = ClusterConnection(
        id=str(uuid4()),
        name=form.name,
        bootstrap_servers=form.bootstrap_servers,
        status=ConnectionStatus.CONNECTED,
        controller_id=info.controller_id,
        cluster_id=info.cluster_id,
    )
    return ok(cluster, message="Successfully connected to Kafka cluster")


@router.get("/connect")
@internal_error(error="Failed to check connection status")
async def connection_status(connection: ConnectionDep) -> JSONResponse:
    """Report whether the server holds an active connection."""
    info = connection.connection_info()
    if info is None:
        return ok({"connected": False, "message": "No active Kafka connection"})

    details: dict[str, Any] = {
        "brokers": info.brokers,
        "clientId": info.client_id,
        "status": "active",
    }
    if info.cluster_id is not None:
        details["clusterId"] = info.cluster_id
    if info.controller_id is not None:
        details["controllerId"] = info.controller_id
    return ok({"connected": True, "connection": details})


@router.delete("/connect")
@internal_error(error="Failed to disconnect from Kafka cluster")
async def disconnect(connection: ConnectionDep) -> JSONResponse:
    """Drop the server's connection."""
    await connection.disconnect()
    return ok(message="Disconnected from Kafka cluster")


# Read-through projections


@router.get("/cluster")
@internal_error(message="An unexpected error occurred while fetching cluster information")
async def cluster_overview(connection: ConnectionDep, aggregator: AggregatorDep) -> JSONResponse:
    """Cluster overview; a zeroed ``unknown`` overview accompanies failures."""
    if not connection.is_active():
        return not_connected(
            "Please establish a connection first", data=ClusterOverview.unknown()
        )

    try:
        overview = await aggregator.get_cluster_overview()
    except NotConnectedError:
        return not_connected(
            "Please establish a connection first", data=ClusterOverview.unknown()
        )
    except KafkaOperationError as e:
        logger.warning(f"Kafka API error in cluster overview: {e}")
        return fail(str(e), 503, data=ClusterOverview.unknown())
    return ok(overview)


@router.get("/brokers")
@internal_error(message="Failed to fetch broker information")
async def list_brokers(connection: ConnectionDep, aggregator: AggregatorDep) -> JSONResponse:
    """Brokers with estimated topic and partition counts."""
    if not connection.is_active():
        return not_connected("Please establish a connection to view brokers")

    try:
        brokers = await aggregator.get_brokers()
    except NotConnectedError:
        return not_connected("Please establish a connection to view brokers")
    except KafkaOperationError as e:
        logger.warning(f"Kafka API error fetching brokers: {e}")
        return fail(str(e), 503, data=[])
    return ok(brokers, count=len(brokers))


@router.get("/topics")
@internal_error(message="Failed to fetch topic information")
async def list_topics(connection: ConnectionDep, aggregator: AggregatorDep) -> JSONResponse:
    """Topics with configuration, metrics and summary averages."""
    if not connection.is_active():
        return not_connected("Please establish a connection to view topics")

    try:
        topics = await aggregator.get_topics()
    except NotConnectedError:
        return not_connected("Please establish a connection to view topics")
    except KafkaOperationError as e:
        logger.warning(f"Kafka API error fetching topics: {e}")
        return fail(str(e), 503, data=[], count=0)

    return ok(
        topics,
        count=len(topics),
        metadata={
            "totalTopics": len(topics),
            "avgPartitions": average([topic.partitions for topic in topics]),
            "avgReplicationFactor": average([topic.replication_factor for topic in topics]),
        },
    )


@router.get("/topics/{name}")
@internal_error(message="Failed to fetch topic details")
async def topic_details(
    name: str, connection: ConnectionDep, aggregator: AggregatorDep
) -> JSONResponse:
    """One topic with its partition layout."""
    if not connection.is_active():
        return not_connected("Please establish a connection to view topics")

    try:
        detail = await aggregator.get_topic_details(name)
    except NotConnectedError:
        return not_connected("Please establish a connection to view topics")
    except TopicNotFound as e:
        return fail(str(e), 404, details={"topicName": name})
    except KafkaOperationError as e:
        logger.warning(f"Kafka API error fetching topic '{name}': {e}")
        return fail(str(e), 503)
    return ok(detail)


# Commands


@router.post("/topics")
@internal_error(message="An unexpected error occurred while creating the topic")
async def create_topic(
    request: Request, connection: ConnectionDep, commands: CommandsDep
) -> JSONResponse:
    """Create a topic."""
    if not connection.is_active():
        return not_connected("Please establish a connection to create topics")

    try:
        form = await parse_body(request, CreateTopicRequest, "Invalid topic creation parameters")
    except ValidationError as e:
        return bad_request(e)

    try:
        created = await commands.create_topic(
            form.name, form.partitions, form.replication_factor, form.config
        )
    except ValidationError as e:
        return bad_request(e)
    except NotConnectedError:
        return not_connected("Please establish a connection to create topics")
    except KafkaPanelError as e:
        logger.warning(f"Topic creation failed: {e}")
        return fail(
            str(e),
            422,
            details={
                "topicName": form.name,
                "partitions": form.partitions,
                "replicationFactor": form.replication_factor,
                "timestamp": timestamp(),
            },
        )
    return ok(created, message=f"Topic '{form.name}' created successfully")


@router.delete("/topics")
@internal_error(message="An unexpected error occurred while deleting the topic")
async def delete_topic(
    request: Request, connection: ConnectionDep, commands: CommandsDep
) -> JSONResponse:
    """Permanently delete a topic. The caller is responsible for confirmation."""
    if not connection.is_active():
        return not_connected("Please establish a connection to delete topics")

    try:
        form = await parse_body(request, DeleteTopicRequest, "Invalid topic deletion parameters")
    except ValidationError as e:
        return bad_request(e)

    try:
        deleted = await commands.delete_topic(form.topic_name)
    except ValidationError as e:
        return bad_request(e)
    except NotConnectedError:
        return not_connected("Please establish a connection to delete topics")
    except KafkaPanelError as e:
        logger.warning(f"Topic deletion failed: {e}")
        return fail(str(e), 422, details={"topicName": form.topic_name, "timestamp": timestamp()})
    return ok(deleted, message=f"Topic '{form.topic_name}' deleted successfully")


@router.patch("/topics/{name}/config")
@internal_error(message="An unexpected error occurred while updating the topic configuration")
async def update_topic_config(
    name: str, request: Request, connection: ConnectionDep, commands: CommandsDep
) -> JSONResponse:
    """Set configuration entries on an existing topic."""
    if not connection.is_active():
        return not_connected("Please establish a connection to update topics")

    try:
        form = await parse_body(
            request, UpdateTopicConfigRequest, "Invalid topic configuration parameters"
        )
    except ValidationError as e:
        return bad_request(e)

    try:
        updated = await commands.update_topic_config(name, form.config)
    except ValidationError as e:
        return bad_request(e)
    except NotConnectedError:
        return not_connected("Please establish a connection to update topics")
    except KafkaPanelError as e:
        logger.warning(f"Topic configuration update failed: {e}")
        return fail(str(e), 422, details={"topicName": name, "timestamp": timestamp()})
    return ok(updated, message=f"Topic '{name}' configuration updated successfully")


@health_router.get("/health")
async def health(connection: ConnectionDep) -> JSONResponse:
    """Liveness probe; reports the connection state without touching the cluster."""
    return ok({"status": "ok", "version": __version__, "connected": connection.is_active()})
