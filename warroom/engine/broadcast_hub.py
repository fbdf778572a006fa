"""Broadcast hub — fans incident changes out to live subscribers.

Each subscriber owns a bounded queue. A push enqueues without awaiting the
subscriber, so a slow consumer can never stall the incident store; one whose
queue is full is dropped instead. Nothing is replayed: a subscription only
sees events broadcast while it is registered.
"""

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Any, Optional

from ..utils.logging import get_logger

logger = get_logger("engine.broadcast_hub")

INCIDENT_CREATED = "incident:created"
INCIDENT_UPDATED = "incident:updated"
BROADCAST_EVENTS = (INCIDENT_CREATED, INCIDENT_UPDATED)


class SubscriberLimitError(Exception):
    """Raised when the hub already holds ``max_subscribers`` subscriptions."""


class Subscription:
    """A registered subscriber channel; read messages with ``get``."""

    def __init__(self, subscriber_id: int, queue_size: int, label: Optional[str] = None):
        self.id = subscriber_id
        self.label = label
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False

    async def get(self) -> dict:
        return await self.queue.get()

    def get_nowait(self) -> dict:
        return self.queue.get_nowait()

    def pending(self) -> int:
        return self.queue.qsize()

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, label={self.label!r}, pending={self.pending()})"


class BroadcastHub:
    """Registry of live subscribers with a guarded push operation."""

    def __init__(self, max_subscribers: int = 100, queue_size: int = 50):
        self._subscribers: dict[int, Subscription] = {}
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)
        self._max_subscribers = max_subscribers
        self._queue_size = queue_size
        self._total_broadcast = 0
        self._total_dropped = 0

    async def subscribe(self, label: Optional[str] = None) -> Subscription:
        """Register a new subscriber. Only events pushed after this call reach it."""
        async with self._lock:
            if len(self._subscribers) >= self._max_subscribers:
                logger.warning("hub_subscribe_rejected", reason="max_subscribers", total=len(self._subscribers))
                raise SubscriberLimitError(
                    f"subscriber limit of {self._max_subscribers} reached"
                )
            subscription = Subscription(next(self._ids), self._queue_size, label=label)
            self._subscribers[subscription.id] = subscription
            total = len(self._subscribers)
        logger.info("hub_subscriber_added", subscriber_id=subscription.id, label=label, total=total)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber. Unknown or already removed subscriptions are ignored."""
        async with self._lock:
            removed = self._subscribers.pop(subscription.id, None)
            subscription.closed = True
            total = len(self._subscribers)
        if removed is not None:
            logger.info("hub_subscriber_removed", subscriber_id=subscription.id, total=total)

    async def broadcast(self, event: str, data: dict[str, Any]) -> int:
        """Push ``event`` to every subscriber registered right now.

        Returns the number of subscribers the message was queued for.
        """
        if event not in BROADCAST_EVENTS:
            raise ValueError(f"event must be one of: {', '.join(BROADCAST_EVENTS)}")

        message = {
            "type": event,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        delivered = 0
        async with self._lock:
            for subscriber_id, subscription in list(self._subscribers.items()):
                try:
                    subscription.queue.put_nowait(message)
                    delivered += 1
                except asyncio.QueueFull:
                    # Consumer can't keep up, drop it rather than block the writer
                    self._subscribers.pop(subscriber_id, None)
                    subscription.closed = True
                    self._total_dropped += 1
                    logger.warning("hub_subscriber_backpressure_drop", subscriber_id=subscriber_id)
            self._total_broadcast += 1
        logger.debug("hub_broadcast", event_type=event, delivered=delivered)
        return delivered

    async def close_all(self) -> None:
        """Drop every subscriber."""
        async with self._lock:
            for subscription in self._subscribers.values():
                subscription.closed = True
            self._subscribers.clear()
        logger.info("hub_closed")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def get_stats(self) -> dict:
        return {
            "subscribers": len(self._subscribers),
            "total_broadcast": self._total_broadcast,
            "total_dropped": self._total_dropped,
        }
