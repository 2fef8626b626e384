"""Domain event publication."""

from .publisher import CONTENT_TYPE, EventPublisher

__all__ = [
    "CONTENT_TYPE",
    "EventPublisher",
]
