"""Per-broker and per-topic metrics providers.

The admin protocol exposes no disk, network, throughput or lag figures, so
the default provider fills them with bounded placeholders. A monitoring
integration can implement ``MetricsProvider`` and be passed to the
aggregator instead.
"""

import random
from typing import Protocol

from kafka_panel.models import BrokerMetrics, TopicMetrics

GIB = 1024 * 1024 * 1024
KIB = 1024


class MetricsProvider(Protocol):
    """Source of metrics that the admin protocol cannot provide."""

    async def broker_metrics(self, broker_id: int) -> BrokerMetrics:
        """Return resource metrics for one broker."""
        ...

    async def topic_metrics(self, topic: str) -> TopicMetrics:
        """Return message, size and lag metrics for one topic."""
        ...


class SimulatedMetricsProvider:
    """Pseudo-random placeholder metrics.

    Ranges: disk 10-89 GiB in whole GiB, network in below 1000 KiB/s, network
    out below 800 KiB/s, 1000-5999 requests/s; topics below 100000 messages,
    1000000 bytes and 1000 lag.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)

    async def broker_metrics(self, broker_id: int) -> BrokerMetrics:  # noqa: ARG002
        """Return placeholder broker metrics."""
        rnd = self._random
        return BrokerMetrics(
            disk_usage=rnd.randrange(80) * GIB + 10 * GIB,
            network_in=rnd.randrange(1000) * KIB,
            network_out=rnd.randrange(800) * KIB,
            requests_per_second=rnd.randrange(5000) + 1000,
        )

    async def topic_metrics(self, topic: str) -> TopicMetrics:  # noqa: ARG002
        """Return placeholder topic metrics."""
        rnd = self._random
        return TopicMetrics(
            message_count=rnd.randrange(100000),
            size_bytes=rnd.randrange(1000000),
            consumer_lag=rnd.randrange(1000),
        )
