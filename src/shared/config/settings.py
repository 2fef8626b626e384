"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)

Settings are read once at startup. Components receive the values they need
at construction time and never mutate them afterwards.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="postgres", description="Database user")
    password: str = Field(default="", description="Database password")
    database: str = Field(default="user_registry", description="Database name")
    connect_timeout_seconds: float = Field(
        default=5.0, description="Timeout for establishing a database connection"
    )
    pool_timeout_seconds: float = Field(
        default=10.0, description="Timeout for checking a connection out of the pool"
    )

    @property
    def url(self) -> str:
        """Build database URL (sync driver)."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def async_url(self) -> str:
        """Build async database URL (asyncpg driver)."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration (cache and event channel)."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    socket_timeout_seconds: float = Field(
        default=2.0, description="Timeout for a single Redis command"
    )
    connect_timeout_seconds: float = Field(
        default=2.0, description="Timeout for establishing a Redis connection"
    )

    @property
    def url(self) -> str:
        """Build Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}"
        return f"redis://{self.host}:{self.port}"


class CacheSettings(BaseSettings):
    """Entity cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    ttl_seconds: int = Field(default=3600, description="Default TTL for cached entities")
    entity_prefix: str = Field(default="entity", description="Prefix of entity cache keys")


class EventSettings(BaseSettings):
    """Domain event publication configuration."""

    model_config = SettingsConfigDict(env_prefix="EVENTS_")

    enabled: bool = Field(default=True, description="Publish domain events")
    exchange: str = Field(default="api_exchange", description="Topic exchange (channel namespace)")
    queue_size: int = Field(default=1000, description="Maximum pending events before dropping")
    publish_timeout_seconds: float = Field(default=5.0, description="Timeout for one publish")
    drain_timeout_seconds: float = Field(
        default=5.0, description="Time allowed to drain pending events on shutdown"
    )

    @field_validator("queue_size")
    @classmethod
    def validate_queue_size(cls, v: int) -> int:
        """Ensure the queue is bounded."""
        return max(1, v)


class ObservabilitySettings(BaseSettings):
    """Request observability configuration."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_")

    max_body_chars: int = Field(
        default=1000, description="Request body characters kept in the access log"
    )
    max_buffered_body_bytes: int = Field(
        default=64 * 1024, description="Largest request body buffered for logging"
    )


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    For nested settings, use the appropriate prefix (e.g., POSTGRES_HOST).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="user-registry", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server bind port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    events: EventSettings = Field(default_factory=EventSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return Settings()
