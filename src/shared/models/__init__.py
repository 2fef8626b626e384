"""Shared data models.

All models follow these conventions:
- Timestamps: ISO 8601 format with timezone (UTC preferred)
- Field names: snake_case in Python, camelCase on the wire
"""

# Base
from .base import RegistryBaseModel

# Common types
from .common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    APIResponse,
    ErrorInfo,
    PaginationMeta,
    PaginationParams,
    ValidationDetail,
)

# Event models
from .events import DomainEvent, EventCategory, EventType

__all__ = [
    # Base
    "RegistryBaseModel",
    # Common
    "APIResponse",
    "ErrorInfo",
    "PaginationMeta",
    "PaginationParams",
    "ValidationDetail",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Events
    "DomainEvent",
    "EventCategory",
    "EventType",
]
