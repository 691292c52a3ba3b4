"""Input rules shared by the command handler and the request schemas."""

import re

from kafka_panel.utils.errors import ValidationError

# Kafka topic naming rules
TOPIC_NAME_PATTERN = re.compile(r"[a-zA-Z0-9._-]+")
MAX_TOPIC_NAME_LENGTH = 249
RESERVED_TOPIC_NAMES = frozenset({".", ".."})

# Bounds accepted from the browser form
MIN_PARTITIONS = 1
MAX_PARTITIONS = 1000
MIN_REPLICATION_FACTOR = 1
MAX_REPLICATION_FACTOR = 10

BOOTSTRAP_SERVERS_PATTERN = re.compile(r"[^:]+:\d+(,[^:]+:\d+)*")

MSG_TOPIC_NAME_REQUIRED = "Topic name is required"
MSG_TOPIC_NAME_TOO_LONG = f"Topic name cannot exceed {MAX_TOPIC_NAME_LENGTH} characters"
MSG_TOPIC_NAME_CHARSET = (
    "Topic name can only contain letters, numbers, dots, hyphens, and underscores"
)
MSG_TOPIC_NAME_RESERVED = 'Topic name cannot be "." or ".."'
MSG_PARTITIONS_MIN = "Must have at least 1 partition"
MSG_PARTITIONS_MAX = f"Maximum {MAX_PARTITIONS} partitions allowed"
MSG_REPLICAS_MIN = "Must have at least 1 replica"
MSG_REPLICAS_MAX = f"Maximum {MAX_REPLICATION_FACTOR} replicas allowed"
MSG_BOOTSTRAP_REQUIRED = "Bootstrap servers are required"
MSG_BOOTSTRAP_FORMAT = "Format: host:port or host1:port1,host2:port2"


def topic_name_problem(name: str) -> str | None:
    """Return the first naming rule a topic name breaks, or None when valid."""
    if not name:
        return MSG_TOPIC_NAME_REQUIRED
    if len(name) > MAX_TOPIC_NAME_LENGTH:
        return MSG_TOPIC_NAME_TOO_LONG
    if name in RESERVED_TOPIC_NAMES:
        return MSG_TOPIC_NAME_RESERVED
    if not TOPIC_NAME_PATTERN.fullmatch(name):
        return MSG_TOPIC_NAME_CHARSET
    return None


def validate_topic_name(name: str, field: str = "name") -> None:
    """Validate a topic name format.

    Args:
        name: Topic name to validate
        field: Wire name of the input field reported on failure

    Raises:
        ValidationError: If topic name is empty, too long or uses other characters
    """
    problem = topic_name_problem(name)
    if problem is not None:
        raise ValidationError(problem, field=field)


def validate_partitions(partitions: int) -> None:
    """Validate the lower bound of a partition count."""
    if partitions < MIN_PARTITIONS:
        raise ValidationError(MSG_PARTITIONS_MIN, field="partitions")


def validate_replication_factor(replication_factor: int) -> None:
    """Validate the lower bound of a replication factor."""
    if replication_factor < MIN_REPLICATION_FACTOR:
        raise ValidationError(MSG_REPLICAS_MIN, field="replicationFactor")


def bootstrap_servers_problem(servers: str) -> str | None:
    """Return why a bootstrap server string is unusable, or None when valid."""
    if not servers:
        return MSG_BOOTSTRAP_REQUIRED
    if not BOOTSTRAP_SERVERS_PATTERN.fullmatch(servers):
        return MSG_BOOTSTRAP_FORMAT
    return None


def split_bootstrap_servers(servers: str) -> list[str]:
    """Split a comma-separated ``host:port`` list, dropping blanks."""
    return [server.strip() for server in servers.split(",") if server.strip()]
