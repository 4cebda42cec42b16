"""Aggregation query construction.

``AggregationQueryBuilder`` turns a metric name plus dashboard parameters into
an immutable ``AggregationQuery``. Building is pure: the store executes the
query later.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from dashboard_measurements.core.config import settings
from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.interval import Interval
from dashboard_measurements.domain.parameters import MeasurementParameter

logger = get_logger("measurements.aggregation.query")


class AggregationColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    function: str  # sum | count | max | min | avg
    property: str
    alias: str


class TimeGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval: Interval
    format: str
    alias: str = "time"


class AggregationQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    columns: Tuple[AggregationColumn, ...]
    filters: Dict[str, str]
    group_by: TimeGroup
    limit: int
    from_time: datetime
    to_time: datetime


class AggregationQueryBuilder:
    """Fluent builder, one instance per query."""

    def __init__(self, metric: str):
        self._metric = metric
        self._columns: list[AggregationColumn] = []
        self._filters: dict[str, str] = {}
        self._group_by: Optional[TimeGroup] = None
        self._limit = 1
        self._from: Optional[datetime] = None
        self._to: Optional[datetime] = None

    def sum(self, prop: str, alias: Optional[str] = None) -> "AggregationQueryBuilder":
        self._columns.append(
            AggregationColumn(function="sum", property=prop, alias=alias or prop)
        )
        return self

    def group_by(self, interval: Interval, fmt: str) -> "AggregationQueryBuilder":
        self._group_by = TimeGroup(interval=interval, format=fmt)
        return self

    def where(self, field: str, value: Optional[str]) -> "AggregationQueryBuilder":
        """Add an equality filter; ``None`` leaves the field unfiltered."""
        if value is not None:
            self._filters[field] = value
        return self

    def limit(self, limit: int) -> "AggregationQueryBuilder":
        if limit < 1:
            logger.warning("aggregation_limit_clamped", extra={"requested": limit})
            limit = 1
        self._limit = limit
        return self

    def between(
        self, from_time: Optional[datetime], to_time: Optional[datetime]
    ) -> "AggregationQueryBuilder":
        self._from, self._to = from_time, to_time
        return self

    def build(self, now: Optional[datetime] = None) -> AggregationQuery:
        now = now or datetime.now(timezone.utc)
        to_time = self._to or now
        from_time = self._from or now - timedelta(
            hours=settings.aggregate_default_lookback_hours
        )
        if from_time > to_time:
            logger.warning(
                "aggregation_range_swapped",
                extra={"from": from_time.isoformat(), "to": to_time.isoformat()},
            )
            from_time, to_time = to_time, from_time
        if not self._columns:
            raise ValueError("aggregation query needs at least one column")
        if self._group_by is None:
            raise ValueError("aggregation query needs a time bucket")
        return AggregationQuery(
            metric=self._metric,
            columns=tuple(self._columns),
            filters=dict(self._filters),
            group_by=self._group_by,
            limit=self._limit,
            from_time=from_time,
            to_time=to_time,
        )


def build_message_count_query(
    metric: str,
    parameter: MeasurementParameter,
    now: Optional[datetime] = None,
) -> AggregationQuery:
    """Sum of ``count`` per time bucket for the device message count series."""
    now = now or datetime.now(timezone.utc)
    bucket = parameter.get_interval(
        "time", Interval.parse(settings.aggregate_default_bucket)
    )
    return (
        AggregationQueryBuilder(metric)
        .sum("count")
        .where("productId", parameter.get_string("productId"))
        .where("msgType", parameter.get_string("msgType"))
        .group_by(bucket, parameter.get_string("format", settings.aggregate_default_format))
        .limit(parameter.get_int("limit", settings.aggregate_default_limit))
        .between(parameter.get_date("from", now=now), parameter.get_date("to", now=now))
        .build(now)
    )
