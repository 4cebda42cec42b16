from __future__ import annotations

import json
from typing import Any, AsyncIterator, Optional

import redis.asyncio as redis

from dashboard_measurements.core.config import settings
from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import DeviceMessage
from dashboard_measurements.infrastructure.messages import parse_device_message
from dashboard_measurements.infrastructure.topics import pattern_to_glob

logger = get_logger("measurements.bus.redis")


class RedisMessageBus:
    """Message bus over Redis pub/sub.

    Channels are device topics without a leading slash
    (``device/p1/d1/message``) carrying JSON payloads.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self.client = client or redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )

    async def publish(self, topic: str, payload: dict[str, Any]) -> int:
        return await self.client.publish(topic.strip("/"), json.dumps(payload))

    def subscribe(self, pattern: str) -> AsyncIterator[DeviceMessage]:
        return self._listen(pattern)

    async def _listen(self, pattern: str) -> AsyncIterator[DeviceMessage]:
        glob = pattern_to_glob(pattern)
        pubsub = self.client.pubsub()
        await pubsub.psubscribe(glob)
        logger.info("redis_subscription_started", extra={"glob": glob})
        try:
            async for item in pubsub.listen():
                if item.get("type") != "pmessage":
                    continue
                try:
                    payload = json.loads(item["data"])
                except (TypeError, ValueError):
                    payload = None
                message = parse_device_message(str(item["channel"]), payload)
                if message is not None:
                    yield message
        finally:
            await pubsub.punsubscribe(glob)
            await pubsub.aclose()
            logger.info("redis_subscription_stopped", extra={"glob": glob})
