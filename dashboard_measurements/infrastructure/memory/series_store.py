from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from dashboard_measurements.aggregation.bucketing import bucket_label, bucket_start
from dashboard_measurements.aggregation.query import AggregationQuery
from dashboard_measurements.domain.models import AggregationRow, SeriesPoint

_FUNCTIONS = {
    "sum": sum,
    "count": len,
    "max": max,
    "min": min,
    "avg": lambda values: sum(values) / len(values),
}


class InMemorySeriesStore:
    """List-backed series store.

    Buckets are epoch aligned and returned most recent first, like the
    ClickHouse store. Every executed query is kept in ``queries``.
    """

    def __init__(self, points: Iterable[SeriesPoint] = ()):
        self._points: List[SeriesPoint] = list(points)
        self.queries: List[AggregationQuery] = []

    @property
    def points(self) -> List[SeriesPoint]:
        return list(self._points)

    async def save(self, points: Iterable[SeriesPoint]) -> None:
        self._points.extend(points)

    async def aggregate(self, query: AggregationQuery) -> List[AggregationRow]:
        self.queries.append(query)
        from_ms = query.from_time.timestamp() * 1000
        to_ms = query.to_time.timestamp() * 1000
        granularity = query.group_by.interval.total_seconds()

        buckets: Dict[float, List[SeriesPoint]] = defaultdict(list)
        for point in self._points:
            if point.metric != query.metric:
                continue
            if not from_ms <= point.timestamp <= to_ms:
                continue
            if any(point.tags.get(k) != v for k, v in query.filters.items()):
                continue
            buckets[bucket_start(point.timestamp / 1000, granularity)].append(point)

        rows = []
        for start in sorted(buckets, reverse=True)[: query.limit]:
            row: Dict[str, object] = {
                query.group_by.alias: bucket_label(start, query.group_by.format)
            }
            for column in query.columns:
                values = [self._field(p, column.property) for p in buckets[start]]
                row[column.alias] = _FUNCTIONS[column.function](values)
            rows.append(AggregationRow(row))
        return rows

    @staticmethod
    def _field(point: SeriesPoint, name: str) -> float:
        if name == "count":
            return point.count
        return float(point.tags.get(name, 0))
