"""Kafka-backed message bus.

Kafka topic names cannot contain ``/``, so device topics are published as
``device.<productId>.<deviceId>.<type>`` and translated back to
``device/<productId>/<deviceId>/<type>`` for subscribers. Every subscription
uses its own group-less consumer, so concurrent subscribers each see every
message.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Callable, Optional

from aiokafka import AIOKafkaConsumer

from dashboard_measurements.core.config import settings
from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import DeviceMessage
from dashboard_measurements.infrastructure.messages import parse_device_message
from dashboard_measurements.infrastructure.topics import pattern_to_regex
from dashboard_measurements.utils.retry import retry_async

logger = get_logger("measurements.bus.kafka")


def _deserialize(value: Optional[bytes]) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


class KafkaMessageBus:
    def __init__(
        self,
        bootstrap_servers: Optional[str] = None,
        separator: Optional[str] = None,
        consume_from: Optional[str] = None,
        consumer_factory: Callable[..., Any] = AIOKafkaConsumer,
        start_retries: int = 7,
    ):
        self.bootstrap_servers = bootstrap_servers or settings.kafka_bootstrap_servers
        self.separator = separator or settings.kafka_topic_separator
        self.consume_from = consume_from or settings.kafka_consume_from
        self._consumer_factory = consumer_factory
        self._start_retries = start_retries

    def subscribe(self, pattern: str) -> AsyncIterator[DeviceMessage]:
        return self._consume(pattern)

    async def _consume(self, pattern: str) -> AsyncIterator[DeviceMessage]:
        regex = pattern_to_regex(pattern, self.separator)
        consumer = self._consumer_factory(
            bootstrap_servers=self.bootstrap_servers,
            group_id=None,
            enable_auto_commit=False,
            auto_offset_reset=self.consume_from,
            value_deserializer=_deserialize,
        )
        consumer.subscribe(pattern=regex.pattern)

        def _on_retry(attempt: int, exc: BaseException, sleep_for: float) -> None:
            logger.warning(
                "kafka_consumer_start_failed",
                extra={"attempt": attempt, "error": str(exc), "retry_in": sleep_for},
            )

        try:
            # stop() releases the client even when start never succeeded
            await retry_async(
                consumer.start,
                retries=self._start_retries,
                base_delay=1.0,
                max_delay=30.0,
                on_retry=_on_retry,
            )
            logger.info("kafka_subscription_started", extra={"pattern": regex.pattern})
            async for record in consumer:
                topic = "/".join(record.topic.split(self.separator))
                message = parse_device_message(topic, record.value)
                if message is not None:
                    yield message
        finally:
            await consumer.stop()
            logger.info("kafka_subscription_stopped", extra={"pattern": regex.pattern})
