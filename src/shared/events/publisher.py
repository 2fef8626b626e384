"""Best-effort domain event publisher over Redis pub/sub.

Channel layout (Redis DB 0):
    {exchange}.{category}.{event_type}, e.g. api_exchange.user.created

Subscribers route by topic with pattern subscriptions such as
``PSUBSCRIBE api_exchange.user.*``. Message bodies are JSON objects
``{event_type, subject_id, data, timestamp}``.

Request handlers never await delivery: they ``submit`` events onto a bounded
queue drained by one worker task. A slow or broken broker therefore drops
events instead of adding latency, and a publish failure never rolls back the
mutation that produced the event.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from redis.exceptions import RedisError

from shared.errors import EventPublishError
from shared.models.events import DomainEvent, EventCategory
from shared.observability import get_logger
from shared.redis_client import RedisClient

logger = get_logger(__name__)

CONTENT_TYPE = "application/json"


class EventPublisher:
    """Publishes domain events to a topic-routed channel namespace."""

    def __init__(
        self,
        redis_client: RedisClient,
        exchange: str = "api_exchange",
        queue_size: int = 1000,
        publish_timeout: float = 5.0,
        drain_timeout: float = 5.0,
        enabled: bool = True,
    ):
        self.redis = redis_client
        self.exchange = exchange
        self.queue_size = max(1, queue_size)
        self.publish_timeout = publish_timeout
        self.drain_timeout = drain_timeout
        self.enabled = enabled
        self._queue: asyncio.Queue[DomainEvent] | None = None
        self._worker: asyncio.Task | None = None
        self._connected = False
        self._closing = False

    @property
    def is_ready(self) -> bool:
        """True while the channel is set up and submissions are accepted."""
        return self._connected and not self._closing

    def channel_for(self, routing_key: str) -> str:
        return f"{self.exchange}.{routing_key}"

    async def setup(self) -> bool:
        """Verify the channel connection and start the worker.

        On failure the publisher stays unusable and the caller carries on
        without events.
        """
        if not self.enabled:
            logger.info("Event publishing disabled")
            return False

        try:
            await asyncio.wait_for(self.redis.ping(), timeout=self.publish_timeout)
        except (RedisError, RuntimeError, OSError, TimeoutError) as e:
            logger.warning(
                "Event channel setup failed, continuing without events",
                exchange=self.exchange,
                error=str(e),
            )
            return False

        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker = asyncio.create_task(self._run(), name="event-publisher")
        self._connected = True
        self._closing = False
        logger.info("Event channel ready", exchange=self.exchange)
        return True

    async def publish(self, routing_key: str, payload: dict[str, Any]) -> None:
        """Serialize and send one message.

        Raises:
            EventPublishError: The channel is not set up, or the send failed
                or timed out.
        """
        if not self._connected:
            raise EventPublishError("Event publisher not ready")

        channel = self.channel_for(routing_key)
        body = json.dumps(payload, default=str)
        try:
            receivers = await asyncio.wait_for(
                self.redis.publish(channel, body), timeout=self.publish_timeout
            )
        except (RedisError, RuntimeError, OSError, TimeoutError) as e:
            raise EventPublishError(
                f"Failed to publish event {routing_key}", details=str(e) or type(e).__name__
            ) from e

        logger.debug(
            "Event published",
            channel=channel,
            routing_key=routing_key,
            content_type=CONTENT_TYPE,
            receivers=receivers,
        )

    async def publish_event(self, event: DomainEvent) -> None:
        await self.publish(event.routing_key, event.to_message())

    async def publish_user_event(
        self, event_type: str, user_id: Any, data: dict[str, Any] | None = None
    ) -> None:
        """Publish ``user.{event_type}`` for one user."""
        await self.publish_event(
            DomainEvent(
                category=EventCategory.USER.value,
                event_type=event_type,
                subject_id=user_id,
                data=data or {},
            )
        )

    async def publish_system_event(
        self, event_type: str, data: dict[str, Any] | None = None
    ) -> None:
        """Publish ``system.{event_type}``."""
        await self.publish_event(
            DomainEvent(
                category=EventCategory.SYSTEM.value,
                event_type=event_type,
                data=data or {},
            )
        )

    def submit(self, event: DomainEvent) -> bool:
        """Hand an event to the worker without waiting for delivery.

        Returns:
            True if the event was queued; False if it was dropped because
            the publisher is unusable or the queue is full.
        """
        if not self.is_ready or self._queue is None:
            logger.debug("Event dropped, publisher not ready", routing_key=event.routing_key)
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Event dropped, queue full",
                routing_key=event.routing_key,
                queue_size=self.queue_size,
            )
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued event has been handled."""
        if self._queue is not None and self._worker is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Stop accepting events, drain what is queued, stop the worker.

        Draining is bounded by ``drain_timeout``; events still pending after
        that are dropped.
        """
        if self._worker is None:
            self._connected = False
            return

        self._closing = True
        try:
            await asyncio.wait_for(self.flush(), timeout=self.drain_timeout)
        except TimeoutError:
            logger.warning(
                "Event drain timed out",
                pending=self._queue.qsize() if self._queue else 0,
            )

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._queue = None
        self._connected = False
        logger.info("Event publisher closed")

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                await self.publish_event(event)
            except EventPublishError as e:
                logger.warning(
                    "Event publish failed",
                    routing_key=event.routing_key,
                    subject_id=event.subject_id,
                    error=e.message,
                    details=e.details,
                )
            except Exception:
                logger.exception("Unexpected event publisher error", routing_key=event.routing_key)
            finally:
                queue.task_done()
