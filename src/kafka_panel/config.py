"""Configuration management for the Kafka control panel."""

import json
from pathlib import Path

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_comma_separated_list(value: str | list[str] | None) -> list[str]:
    """Parse comma-separated string or JSON array into list of strings.

    Args:
        value: Input value (string, list, or None)

    Returns:
        List of strings
    """
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        value_stripped = value.strip()
        if value_stripped.startswith("[") and value_stripped.endswith("]"):
            try:
                parsed = json.loads(value_stripped)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except json.JSONDecodeError:
                # Not JSON after all, treat as comma-separated
                pass
        return [item.strip() for item in value.split(",") if item.strip()]
    return []


class KafkaConfig(BaseSettings):
    """Kafka admin connection configuration.

    ``bootstrap_servers`` is only used for the startup auto-connect; the
    control panel can always connect manually to any other cluster.
    """

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Connection
    bootstrap_servers: str | None = Field(
        default=None,
        description="Comma-separated broker list to auto-connect to at startup",
    )
    client_id: str = Field(
        default="kafka-panel",
        description="Client identifier for Kafka connections",
    )
    connection_timeout_ms: int = Field(
        default=10000,
        description="Socket connection setup timeout in milliseconds",
        gt=0,
    )
    request_timeout_ms: int = Field(
        default=30000,
        description="Timeout for a single admin request in milliseconds",
        gt=0,
    )
    retry_backoff_ms: int = Field(
        default=100,
        description="Initial back-off between request retries in milliseconds",
        gt=0,
    )
    retry_backoff_max_ms: int = Field(
        default=1000,
        description="Upper bound for the retry back-off in milliseconds",
        gt=0,
    )
    operation_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for topic creation/deletion to complete on the controller",
        gt=0,
    )

    # Security Protocol
    security_protocol: str = Field(
        default="PLAINTEXT",
        description="Security protocol: PLAINTEXT, SSL, SASL_PLAINTEXT, SASL_SSL",
    )

    # SASL Authentication
    sasl_mechanism: str | None = Field(
        default=None,
        description="SASL mechanism: PLAIN, SCRAM-SHA-256, SCRAM-SHA-512",
    )
    sasl_username: str | None = Field(
        default=None,
        description="SASL username for PLAIN/SCRAM",
    )
    sasl_password: SecretStr | None = Field(
        default=None,
        description="SASL password for PLAIN/SCRAM (sensitive)",
    )

    # SSL/TLS
    ssl_ca_location: Path | None = Field(
        default=None,
        description="Path to CA certificate file",
    )
    ssl_certificate_location: Path | None = Field(
        default=None,
        description="Path to client certificate file",
    )
    ssl_key_location: Path | None = Field(
        default=None,
        description="Path to client private key file",
    )
    ssl_key_password: SecretStr | None = Field(
        default=None,
        description="Password for encrypted private key (sensitive)",
    )

    @field_validator("security_protocol")
    @classmethod
    def validate_security_protocol(cls, v: str) -> str:
        """Validate security protocol."""
        valid = {"PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL"}
        if v not in valid:
            raise ValueError(f"Invalid security_protocol: {v}. Must be one of {valid}")
        return v

    @field_validator("sasl_mechanism")
    @classmethod
    def validate_sasl_mechanism(cls, v: str | None) -> str | None:
        """Validate SASL mechanism."""
        if v is None:
            return None
        valid = {"PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"}
        if v not in valid:
            raise ValueError(f"Invalid sasl_mechanism: {v}. Must be one of {valid}")
        return v

    @model_validator(mode="after")
    def validate_sasl_config(self) -> "KafkaConfig":
        """Validate SASL configuration consistency."""
        if self.sasl_mechanism and (not self.sasl_username or not self.sasl_password):
            raise ValueError(
                f"SASL mechanism {self.sasl_mechanism} requires "
                "KAFKA_SASL_USERNAME and KAFKA_SASL_PASSWORD"
            )
        return self


class SamplingConfig(BaseSettings):
    """Sample sizes used when aggregating metadata of large clusters."""

    model_config = SettingsConfigDict(
        env_prefix="SAMPLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    overview_sample_size: int = Field(
        default=50,
        description="Topics whose metadata is fetched for the overview partition count",
        ge=1,
    )
    broker_sample_size: int = Field(
        default=20,
        description="Topics whose metadata is fetched for the per-broker distribution",
        ge=1,
    )


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the HTTP server to",
    )
    port: int = Field(
        default=8000,
        description="Port to bind the HTTP server to",
        gt=0,
        le=65535,
    )
    api_prefix: str = Field(
        default="/api",
        description="Path prefix for all /kafka routes",
    )
    cors_allow_origins: str | list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API from a browser",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        description="Log format string for loguru",
    )
    json_logging: bool = Field(
        default=False,
        description="Enable JSON structured logging",
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode (variable values in tracebacks)",
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        """Parse CORS origins."""
        return _parse_comma_separated_list(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, level: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {level}. Must be one of {valid_levels}")
        return level_upper


class ClientConfig(BaseSettings):
    """Settings for the client-side connection synchronizer and data watchers."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://127.0.0.1:8000/api",
        description="Base URL of the control panel API",
    )
    state_file: Path = Field(
        default=Path.home() / ".kafka-panel" / "kafka-cluster.json",
        description="File that persists the last known cluster connection",
    )
    clusters_file: Path = Field(
        default=Path.home() / ".kafka-panel" / "kafka-clusters.json",
        description="File that persists the saved cluster list and selection",
    )
    request_timeout: float = Field(
        default=60.0,
        description="HTTP request timeout in seconds",
        gt=0,
    )
    retry_delay: float = Field(
        default=5.0,
        description="Delay before the single automatic retry after a failed fetch",
        gt=0,
    )
    poll_interval: float = Field(
        default=0.0,
        description="Seconds between automatic refreshes (0 disables polling)",
        ge=0,
    )


class Config:
    """Main configuration container."""

    def __init__(self) -> None:
        """Initialize configuration from environment and .env file."""
        self.kafka = KafkaConfig()
        self.sampling = SamplingConfig()
        self.server = ServerConfig()
        self.client = ClientConfig()

    def __repr__(self) -> str:
        """Return string representation of config."""
        return (
            f"Config(kafka={self.kafka!r}, sampling={self.sampling!r}, "
            f"server={self.server!r}, client={self.client!r})"
        )
