"""
Pydantic-based configuration models for the garden inventory engine.

Every section is a BaseSettings model read from prefixed environment
variables (and an optional ``.env`` file through ``AppConfig``).
"""

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class InventoryConfig(BaseSettings):
    """Inventory engine behaviour."""

    max_slots: int = Field(default=50, ge=1, description="Maximum number of distinct item ids")
    task_prefix: str = Field(default="inventory", description="Prefix of every outbound task name")
    auto_save: bool = Field(default=True, description="Hydrate on start and flush after each mutation")
    storage_key: str = Field(default="garden-inventory", min_length=1, description="Key of the persisted blob")
    debug: bool = Field(default=False, description="Verbose tracing of dispatched commands")

    @field_validator("task_prefix")
    @classmethod
    def validate_task_prefix(cls, v: str) -> str:
        """Task names are built by joining on underscores, so the prefix must be a single token."""
        if not v or not v.strip() or any(ch.isspace() for ch in v):
            raise ValueError("task_prefix must be non-empty and contain no whitespace")
        return v

    model_config = {"env_prefix": "INVENTORY_", "case_sensitive": False, "extra": "ignore"}


class StorageConfig(BaseSettings):
    """Durable storage backend selection."""

    backend: Literal["memory", "file"] = Field(default="file", description="Storage backend")
    directory: str = Field(default="data/inventory", description="Directory of the file backend")

    model_config = {"env_prefix": "STORAGE_", "case_sensitive": False, "extra": "ignore"}


class NATSConfig(BaseSettings):
    """NATS messaging configuration."""

    enabled: bool = Field(default=False, description="Talk to the host over NATS instead of stdin/stdout")
    url: str = Field(default="nats://localhost:4222", description="NATS server URL")
    reconnect_time_wait: int = Field(default=1, description="Reconnect wait time in seconds")
    max_reconnect_attempts: int = Field(default=5, description="Maximum reconnection attempts")
    connect_timeout: int = Field(default=5, description="Connection timeout in seconds")
    ping_interval: int = Field(default=30, description="Ping interval in seconds")
    max_outstanding_pings: int = Field(default=5, description="Maximum outstanding pings")
    inbound_subject: str = Field(default="garden.inventory.commands", description="Subject host commands arrive on")
    outbound_subject: str = Field(default="garden.inventory.events", description="Subject notifications go out on")
    queue_group: str | None = Field(default=None, description="Optional queue group for the command subscription")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate NATS URL format."""
        if not v.startswith(("nats://", "tls://", "ws://", "wss://")):
            raise ValueError(f"NATS URL must use a nats://, tls://, ws:// or wss:// scheme, got '{v}'")
        return v

    model_config = {"env_prefix": "NATS_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str | None = Field(default=None, description="Logging environment (auto-detected if unset)")
    level: str = Field(default="INFO", description="Log level")
    log_file: str | None = Field(default=None, description="Optional rotating log file")
    max_bytes: int = Field(default=10 * 1024 * 1024, description="Log rotation max size in bytes")
    backup_count: int = Field(default=5, description="Number of backup log files")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str | None) -> str | None:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "production"]
        if v is not None and v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Aggregates every section. Access via the get_config() singleton function.
    """

    inventory: InventoryConfig = Field(default_factory=InventoryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    nats: NATSConfig = Field(default_factory=NATSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_logging_dict(self) -> dict[str, Any]:
        """Configuration dictionary in the shape ``setup_enhanced_logging`` expects."""
        return {"logging": self.logging.model_dump(exclude_none=True)}
