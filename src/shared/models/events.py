"""Domain event models.

Events are ephemeral: they are published after a successful mutation and
never persisted here. Delivery is the broker's responsibility.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventCategory(str, Enum):
    """First segment of a routing key."""

    USER = "user"
    SYSTEM = "system"


class EventType(str, Enum):
    """Second segment of a routing key."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    HEALTH_CHECK = "health_check"
    ERROR = "error"


class DomainEvent(BaseModel):
    """One structured message about a significant mutation or system state.

    Routing key: {category}.{event_type}, e.g. user.created
    """

    category: str
    event_type: str
    subject_id: Any = None
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def routing_key(self) -> str:
        return f"{self.category}.{self.event_type}"

    def to_message(self) -> dict[str, Any]:
        """Build the message body: {event_type, subject_id, data, timestamp}."""
        return {
            "event_type": self.event_type,
            "subject_id": self.subject_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }
