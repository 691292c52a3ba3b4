"""Async HTTP client for the control panel API."""

from typing import Any

import httpx
from loguru import logger

from kafka_panel.config import ClientConfig
from kafka_panel.models import (
    Broker,
    ClusterConnection,
    ClusterOverview,
    Topic,
    TopicConfigUpdated,
    TopicCreated,
    TopicDeleted,
    TopicDetail,
)
from kafka_panel.utils.errors import ApiError


def get_error_message(error: object) -> str:
    """Return a message fit for display for any caught error."""
    if isinstance(error, Exception):
        return str(error)
    return "An unexpected error occurred"


class KafkaPanelClient:
    """One coroutine per API endpoint.

    Failed envelopes (non-2xx, or ``success: false``) raise ``ApiError`` with
    the HTTP status and the whole response body as ``details``. Transport
    failures raise ``ApiError`` with status 0.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000/api",
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, including the ``/api`` prefix
            client: Preconfigured httpx client; its own base URL is used as is
            timeout: Request timeout in seconds when creating the httpx client

        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "KafkaPanelClient":
        """Create a client from client settings."""
        return cls(base_url=config.base_url, timeout=config.request_timeout)

    async def request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        """Send a request and return the whole success envelope.

        Raises:
            ApiError: If the request fails or the envelope reports failure
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed: {e}")
            raise ApiError(f"Network error: {e}", 0) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                f"HTTP {response.status_code}: {response.reason_phrase}", response.status_code
            ) from e

        if not isinstance(body, dict):
            raise ApiError("Invalid response format", response.status_code, body)
        if not response.is_success or not body.get("success"):
            message = body.get("error") or f"HTTP {response.status_code}: {response.reason_phrase}"
            raise ApiError(message, response.status_code, body)
        return body

    async def _data(self, method: str, path: str, json: Any = None) -> Any:
        return (await self.request(method, path, json=json)).get("data")

    async def connect(self, name: str, bootstrap_servers: str) -> ClusterConnection:
        """Ask the server to connect to a cluster."""
        data = await self._data(
            "POST", "/kafka/connect", json={"name": name, "bootstrapServers": bootstrap_servers}
        )
        return ClusterConnection.model_validate(data)

    async def get_connection_status(self) -> dict[str, Any]:
        """Return ``{connected, connection?}`` as reported by the server."""
        return await self._data("GET", "/kafka/connect")

    async def disconnect(self) -> str:
        """Ask the server to drop its connection."""
        body = await self.request("DELETE", "/kafka/connect")
        return body.get("message", "")

    async def get_cluster_overview(self) -> ClusterOverview:
        """Fetch the cluster overview."""
        return ClusterOverview.model_validate(await self._data("GET", "/kafka/cluster"))

    async def get_brokers(self) -> list[Broker]:
        """Fetch the broker list."""
        data = await self._data("GET", "/kafka/brokers")
        return [Broker.model_validate(item) for item in data or []]

    async def get_topics(self) -> list[Topic]:
        """Fetch the topic list."""
        data = await self._data("GET", "/kafka/topics")
        return [Topic.model_validate(item) for item in data or []]

    async def get_topic(self, name: str) -> TopicDetail:
        """Fetch one topic with its partitions."""
        data = await self._data("GET", f"/kafka/topics/{name}")
        return TopicDetail.model_validate(data)

    async def create_topic(
        self,
        name: str,
        partitions: int,
        replication_factor: int,
        config: dict[str, str] | None = None,
    ) -> TopicCreated:
        """Create a topic."""
        payload: dict[str, Any] = {
            "name": name,
            "partitions": partitions,
            "replicationFactor": replication_factor,
        }
        if config:
            payload["config"] = config
        data = await self._data("POST", "/kafka/topics", json=payload)
        return TopicCreated.model_validate(data)

    async def delete_topic(self, topic_name: str) -> TopicDeleted:
        """Delete a topic. Confirm with the user before calling."""
        data = await self._data("DELETE", "/kafka/topics", json={"topicName": topic_name})
        return TopicDeleted.model_validate(data)

    async def update_topic_config(self, name: str, config: dict[str, str]) -> TopicConfigUpdated:
        """Set configuration entries on a topic."""
        data = await self._data("PATCH", f"/kafka/topics/{name}/config", json={"config": config})
        return TopicConfigUpdated.model_validate(data)

    async def health(self) -> dict[str, Any]:
        """Fetch the server health report."""
        return await self._data("GET", "/health")

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "KafkaPanelClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Exit async context manager and close the client."""
        await self.aclose()
