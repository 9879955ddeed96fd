"""
Message Bus for AgentWiki

In-process pub/sub that fans events out to connected listeners such as
the live event stream. Delivery is fire-and-forget and at-most-once:
events are never persisted and a listener only sees what is published
while it is subscribed.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from agentwiki.models.events import DEFAULT_TOPIC, WikiEvent, WikiEventType

logger = structlog.get_logger(__name__)


@dataclass
class Subscription:
    """A connected listener and its pending events."""

    id: str
    topics: frozenset[str]
    queue: asyncio.Queue[WikiEvent]
    dropped: int = 0

    def matches(self, event: WikiEvent) -> bool:
        return event.topic in self.topics

    async def get(self, timeout: float | None = None) -> WikiEvent | None:
        """
        Wait for the next event.

        Returns:
            The event, or None if ``timeout`` elapsed first
        """
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except TimeoutError:
            return None


@dataclass
class BusMetrics:
    events_published: int = 0
    events_delivered: int = 0
    events_dropped: int = 0
    subscriptions_opened: int = 0
    subscriptions_closed: int = 0
    by_type: dict[str, int] = field(default_factory=dict)


class MessageBus:
    """
    Event bus with an explicit subscriber lifecycle.

    Features:
    - subscribe()/unsubscribe() or the ``connect()`` context manager
    - per-subscriber bounded queues; a full queue drops the event for that
      subscriber only
    - non-blocking publish, safe to call right after a store commit
    """

    def __init__(self, max_queue_size: int = 100):
        self._max_queue_size = max_queue_size
        self._subscriptions: dict[str, Subscription] = {}
        self._metrics = BusMetrics()

    # =========================================================================
    # Subscription Management
    # =========================================================================

    def subscribe(self, topics: set[str] | None = None) -> Subscription:
        """
        Register a listener.

        Args:
            topics: Topics to receive (defaults to the wiki topic)

        Returns:
            Subscription to read events from and later pass to unsubscribe()
        """
        subscription = Subscription(
            id=str(uuid4()),
            topics=frozenset(topics or {DEFAULT_TOPIC}),
            queue=asyncio.Queue(maxsize=self._max_queue_size),
        )
        self._subscriptions[subscription.id] = subscription
        self._metrics.subscriptions_opened += 1

        logger.info(
            "bus_subscription_created",
            subscription_id=subscription.id,
            topics=sorted(subscription.topics),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription | str) -> bool:
        """
        Remove a listener.

        Returns:
            True if removed, False if it was not subscribed
        """
        sub_id = subscription if isinstance(subscription, str) else subscription.id
        removed = self._subscriptions.pop(sub_id, None)
        if removed is None:
            return False

        self._metrics.subscriptions_closed += 1
        logger.info("bus_subscription_removed", subscription_id=sub_id, dropped=removed.dropped)
        return True

    @asynccontextmanager
    async def connect(self, topics: set[str] | None = None) -> AsyncIterator[Subscription]:
        """
        Subscribe for the lifetime of the block.

        Usage:
            async with bus.connect() as subscription:
                event = await subscription.get()
        """
        subscription = self.subscribe(topics)
        try:
            yield subscription
        finally:
            self.unsubscribe(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    # =========================================================================
    # Publishing
    # =========================================================================

    def publish(
        self,
        event_type: WikiEventType | str,
        id: str | None = None,
        summary: str | None = None,
        topic: str = DEFAULT_TOPIC,
    ) -> WikiEvent:
        """
        Publish an event to current subscribers of ``topic``.

        Never blocks and never raises on delivery problems.
        """
        event = WikiEvent(
            type=event_type.value if isinstance(event_type, WikiEventType) else event_type,
            id=id,
            summary=summary,
            topic=topic,
        )
        self._metrics.events_published += 1
        self._metrics.by_type[event.type] = self._metrics.by_type.get(event.type, 0) + 1

        for subscription in list(self._subscriptions.values()):
            if not subscription.matches(event):
                continue
            try:
                subscription.queue.put_nowait(event)
                self._metrics.events_delivered += 1
            except asyncio.QueueFull:
                subscription.dropped += 1
                self._metrics.events_dropped += 1
                logger.warning(
                    "bus_event_dropped",
                    subscription_id=subscription.id,
                    event_type=event.type,
                )

        logger.debug("bus_event_published", event_type=event.type, entity_id=id)
        return event

    def get_metrics(self) -> dict[str, int | dict[str, int]]:
        return {
            "events_published": self._metrics.events_published,
            "events_delivered": self._metrics.events_delivered,
            "events_dropped": self._metrics.events_dropped,
            "subscriptions_opened": self._metrics.subscriptions_opened,
            "subscriptions_closed": self._metrics.subscriptions_closed,
            "active_subscriptions": self.subscriber_count,
            "by_type": dict(self._metrics.by_type),
        }
