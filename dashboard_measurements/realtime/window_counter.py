"""Tumbling-window message counting over a live bus subscription.

Each call to ``WindowCounter.stream`` opens its own subscription and its own
window boundary, anchored at the moment the subscription starts. A pump task
counts arrivals and a timer task closes windows at ``start + n * interval``,
queueing each closed count. The stream only drains that queue, so a slow
consumer delays delivery but never merges or shifts windows, and empty
windows still emit a zero.
"""

from __future__ import annotations

import asyncio
import time
from datetime import timedelta
from typing import AsyncIterator, Callable

from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.core.metrics import (
    REALTIME_ACTIVE_SUBSCRIPTIONS,
    REALTIME_MESSAGES_TOTAL,
    REALTIME_SUBSCRIPTION_FAILURES_TOTAL,
    REALTIME_WINDOWS_TOTAL,
)
from dashboard_measurements.domain.errors import UpstreamSubscriptionFailure
from dashboard_measurements.domain.models import MeasurementValue
from dashboard_measurements.infrastructure.ports import MessageBus, Subscription

logger = get_logger("measurements.realtime.window_counter")


def _now_millis() -> int:
    return int(time.time() * 1000)


class _Window:
    """Message count of the currently open window.

    Only touched from the event loop thread, so increments and the
    read-and-reset in ``close`` cannot interleave.
    """

    def __init__(self):
        self.count = 0

    def add(self) -> None:
        self.count += 1

    def close(self) -> int:
        count, self.count = self.count, 0
        return count


class WindowCounter:
    def __init__(
        self,
        bus: MessageBus,
        pattern: str,
        clock: Callable[[], int] = _now_millis,
    ):
        self.bus = bus
        self.pattern = pattern
        self.clock = clock

    async def stream(self, interval: timedelta) -> AsyncIterator[MeasurementValue]:
        """Yield one ``MeasurementValue(count, emitted_at_millis)`` per window.

        Runs until the caller stops iterating (``aclose`` or cancellation) or
        the subscription fails, which raises UpstreamSubscriptionFailure.
        """
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ValueError("window interval must be positive")

        subscription = self.bus.subscribe(self.pattern)
        window = _Window()
        closed: asyncio.Queue[MeasurementValue | UpstreamSubscriptionFailure] = (
            asyncio.Queue()
        )
        pump = asyncio.create_task(self._pump(subscription, window))
        timer = asyncio.create_task(self._tick(pump, window, closed, seconds))
        REALTIME_ACTIVE_SUBSCRIPTIONS.inc()
        logger.debug(
            "realtime_subscription_opened",
            extra={"pattern": self.pattern, "interval_seconds": seconds},
        )
        try:
            while True:
                item = await closed.get()
                if isinstance(item, UpstreamSubscriptionFailure):
                    raise item
                yield item
        finally:
            timer.cancel()
            pump.cancel()
            # A failed pump's error was already reported; don't re-raise it here.
            await asyncio.gather(timer, pump, return_exceptions=True)
            try:
                await subscription.aclose()
            finally:
                REALTIME_ACTIVE_SUBSCRIPTIONS.dec()
                logger.debug(
                    "realtime_subscription_closed", extra={"pattern": self.pattern}
                )

    async def _tick(
        self,
        pump: asyncio.Task,
        window: _Window,
        closed: asyncio.Queue,
        seconds: float,
    ) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        ticks = 0
        while True:
            ticks += 1
            delay = max(0.0, started + ticks * seconds - loop.time())
            done, _ = await asyncio.wait({pump}, timeout=delay)
            if done:
                closed.put_nowait(self._failure(pump))
                return
            closed.put_nowait(MeasurementValue(value=window.close(), timestamp=self.clock()))
            REALTIME_WINDOWS_TOTAL.inc()

    @staticmethod
    async def _pump(subscription: Subscription, window: _Window) -> None:
        async for _ in subscription:
            window.add()
            REALTIME_MESSAGES_TOTAL.inc()

    def _failure(self, pump: asyncio.Task) -> UpstreamSubscriptionFailure:
        REALTIME_SUBSCRIPTION_FAILURES_TOTAL.inc()
        error = pump.exception()
        reason = str(error) if error else "message bus closed the subscription"
        logger.error(
            "realtime_subscription_failed",
            extra={"pattern": self.pattern, "error": reason},
        )
        failure = UpstreamSubscriptionFailure(self.pattern, reason)
        failure.__cause__ = error
        return failure
