"""In-process message bus.

Useful for tests and for embedding the engine next to whatever produces
device messages. Each subscription gets its own unbounded queue, registered
as soon as ``subscribe`` returns.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Set

from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import DeviceMessage
from dashboard_measurements.infrastructure.topics import topic_matches

logger = get_logger("measurements.bus.memory")

_CLOSED = object()


class InMemorySubscription:
    def __init__(self, bus: "InMemoryMessageBus", pattern: str):
        self._bus = bus
        self.pattern = pattern
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    def __aiter__(self) -> "InMemorySubscription":
        return self

    async def __anext__(self) -> DeviceMessage:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self._closed = True
            raise item
        return item

    def offer(self, item: Any) -> None:
        self._queue.put_nowait(item)

    async def aclose(self) -> None:
        self._closed = True
        self._bus._unsubscribe(self)


class InMemoryMessageBus:
    def __init__(self):
        self._subscriptions: Set[InMemorySubscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, pattern: str) -> InMemorySubscription:
        subscription = InMemorySubscription(self, pattern)
        self._subscriptions.add(subscription)
        return subscription

    def publish(self, message: DeviceMessage) -> int:
        """Deliver to every matching subscription; returns the delivery count."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if topic_matches(subscription.pattern, message.topic):
                subscription.offer(message)
                delivered += 1
        return delivered

    def close(self, error: Optional[BaseException] = None) -> None:
        """End every subscription, optionally with ``error``."""
        for subscription in list(self._subscriptions):
            subscription.offer(error if error is not None else _CLOSED)
        self._subscriptions.clear()
        logger.info("memory_bus_closed", extra={"error": str(error) if error else None})

    def _unsubscribe(self, subscription: InMemorySubscription) -> None:
        self._subscriptions.discard(subscription)
