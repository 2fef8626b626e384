"""Configuration management module.

This module provides:
- Environment-based configuration with validation
- Component settings groups (database, redis, cache, events, observability)
- Cached settings access via get_settings()
"""

from .settings import (
    CacheSettings,
    DatabaseSettings,
    Environment,
    EventSettings,
    LogFormat,
    LogLevel,
    ObservabilitySettings,
    RedisSettings,
    Settings,
    get_settings,
)

__all__ = [
    # Main settings
    "Settings",
    "get_settings",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Component settings
    "DatabaseSettings",
    "RedisSettings",
    "CacheSettings",
    "EventSettings",
    "ObservabilitySettings",
]
