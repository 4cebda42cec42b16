"""Device message quantity: how many messages devices send.

The real-time dimension counts messages on the bus per window; the aggregate
dimension sums the recorded ``message-count`` series per time bucket.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Optional

from dashboard_measurements.aggregation.query import build_message_count_query
from dashboard_measurements.aggregation.sequencer import execute_query, sequence_rows
from dashboard_measurements.core.config import settings
from dashboard_measurements.domain.models import (
    CommonDimensionDefinition,
    DimensionDefinition,
    MeasurementDefinition,
    MeasurementValue,
)
from dashboard_measurements.domain.parameters import MeasurementParameter
from dashboard_measurements.domain.schema import ConfigMetadata, DataType
from dashboard_measurements.infrastructure.ports import MessageBus, SeriesStore
from dashboard_measurements.realtime.window_counter import WindowCounter

from .base import MeasurementDimension
from .measurement import Measurement

VALUE_TYPE = DataType.INT

REALTIME_CONFIG = ConfigMetadata().add(
    "interval", "Statistics period", "e.g. 1s, 10s", DataType.DURATION
)

HISTORY_CONFIG = (
    ConfigMetadata()
    .add("productId", "Product", "", DataType.STRING)
    .add("time", "Bucket size", "e.g. 1h, 10m, 30s", DataType.INTERVAL)
    .add("format", "Time format", "e.g. %m-%d %H:00", DataType.STRING)
    .add("msgType", "Message type", "", DataType.STRING)
    .add("limit", "Max buckets", "", DataType.INT)
    .add("from", "From", "", DataType.DATE_TIME)
    .add("to", "To", "", DataType.DATE_TIME)
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RealTimeMessageDimension(MeasurementDimension):
    def __init__(self, bus: MessageBus, pattern: Optional[str] = None):
        super().__init__("measurements.dimension.realtime")
        self._counter = WindowCounter(bus, pattern or settings.device_topic_pattern)

    def get_definition(self) -> DimensionDefinition:
        return CommonDimensionDefinition.real_time

    def get_value_type(self) -> DataType:
        return VALUE_TYPE

    def get_params(self) -> ConfigMetadata:
        return REALTIME_CONFIG

    def is_real_time(self) -> bool:
        return True

    def get_value(
        self, parameter: MeasurementParameter
    ) -> AsyncIterator[MeasurementValue]:
        interval = parameter.get_duration(
            "interval", timedelta(seconds=settings.realtime_default_interval_seconds)
        )
        return self._counter.stream(interval)


class AggregateMessageDimension(MeasurementDimension):
    def __init__(
        self,
        store: SeriesStore,
        metric: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__("measurements.dimension.aggregate")
        self.store = store
        self.metric = metric or settings.message_count_metric
        self.clock = clock

    def get_definition(self) -> DimensionDefinition:
        return CommonDimensionDefinition.aggregate

    def get_value_type(self) -> DataType:
        return VALUE_TYPE

    def get_params(self) -> ConfigMetadata:
        return HISTORY_CONFIG

    def is_real_time(self) -> bool:
        return False

    async def get_value(
        self, parameter: MeasurementParameter
    ) -> AsyncIterator[MeasurementValue]:
        query = build_message_count_query(self.metric, parameter, now=self.clock())
        self.logger.debug(
            "aggregate_query_built",
            extra={
                "metric": query.metric,
                "filters": query.filters,
                "bucket": str(query.group_by.interval),
                "limit": query.limit,
            },
        )
        rows = await execute_query(self.store, query)
        for value in sequence_rows(rows, limit=query.limit):
            yield value


def device_message_measurement(bus: MessageBus, store: SeriesStore) -> Measurement:
    definition = MeasurementDefinition(
        id=settings.measurement_id, name=settings.measurement_name
    )
    return Measurement(
        definition,
        [RealTimeMessageDimension(bus), AggregateMessageDimension(store)],
    )
