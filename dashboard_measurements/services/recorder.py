"""Background recorder feeding the ``message-count`` series.

Counts device messages per (productId, msgType) and writes one SeriesPoint
per pair every flush interval. Those points are what the aggregate dimension
sums per bucket.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from typing import Optional, Tuple

from dashboard_measurements.core.config import settings
from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.core.metrics import (
    RECORDER_FLUSH_ERRORS_TOTAL,
    RECORDER_POINTS_TOTAL,
)
from dashboard_measurements.domain.models import SeriesPoint
from dashboard_measurements.infrastructure.ports import MessageBus, SeriesStore, Subscription

logger = get_logger("measurements.recorder")

CountKey = Tuple[str, str]


class MessageCountRecorder:
    def __init__(
        self,
        bus: MessageBus,
        store: SeriesStore,
        metric: Optional[str] = None,
        pattern: Optional[str] = None,
        flush_interval: Optional[float] = None,
    ):
        self.bus = bus
        self.store = store
        self.metric = metric or settings.message_count_metric
        self.pattern = pattern or settings.device_topic_pattern
        self.flush_interval = flush_interval or settings.recorder_flush_interval_seconds
        self._counts: Counter[CountKey] = Counter()

    @property
    def pending(self) -> int:
        return sum(self._counts.values())

    def record(self, product_id: Optional[str], message_type: Optional[str]) -> None:
        self._counts[(product_id or "", message_type or "")] += 1

    async def flush(self) -> int:
        """Write pending counts; on failure they are kept for the next flush."""
        if not self._counts:
            return 0
        counts, self._counts = self._counts, Counter()
        now_ms = int(time.time() * 1000)
        points = [
            SeriesPoint(
                metric=self.metric,
                timestamp=now_ms,
                count=count,
                tags={"productId": product_id, "msgType": msg_type},
            )
            for (product_id, msg_type), count in counts.items()
        ]
        try:
            await self.store.save(points)
        except Exception as e:  # noqa: BLE001
            RECORDER_FLUSH_ERRORS_TOTAL.inc()
            self._counts.update(counts)
            logger.error(
                "recorder_flush_failed",
                extra={"points": len(points), "error": str(e)},
            )
            return 0
        RECORDER_POINTS_TOTAL.inc(len(points))
        logger.debug("recorder_flushed", extra={"points": len(points)})
        return len(points)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Record until ``stop_event`` is set or the bus subscription ends.

        A failed subscription is re-raised after the final flush.
        """
        subscription = self.bus.subscribe(self.pattern)
        pump = asyncio.create_task(self._pump(subscription))
        logger.info(
            "recorder_started",
            extra={"pattern": self.pattern, "flush_interval": self.flush_interval},
        )
        try:
            while not stop_event.is_set():
                stop_wait = asyncio.create_task(stop_event.wait())
                done, _ = await asyncio.wait(
                    {pump, stop_wait},
                    timeout=self.flush_interval,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                stop_wait.cancel()
                if pump in done:
                    if pump.exception() is not None:
                        logger.error(
                            "recorder_subscription_failed",
                            extra={"error": str(pump.exception())},
                        )
                    pump.result()
                    break
                await self.flush()
        finally:
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)
            await subscription.aclose()
            await self.flush()
            logger.info("recorder_stopped", extra={"pattern": self.pattern})

    async def _pump(self, subscription: Subscription) -> None:
        async for message in subscription:
            self.record(message.product_id, message.message_type)
