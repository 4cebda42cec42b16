from __future__ import annotations

import time
from typing import Iterable, List, Optional

from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.core.metrics import (
    AGGREGATE_QUERIES_TOTAL,
    AGGREGATE_QUERY_FAILURES_TOTAL,
    AGGREGATE_QUERY_LATENCY_SECONDS,
)
from dashboard_measurements.domain.errors import QueryExecutionFailure
from dashboard_measurements.domain.models import AggregationRow, MeasurementValue
from dashboard_measurements.infrastructure.ports import SeriesStore

from .query import AggregationQuery

logger = get_logger("measurements.aggregation.sequencer")


async def execute_query(
    store: SeriesStore, query: AggregationQuery
) -> List[AggregationRow]:
    """Run ``query`` against the store, wrapping failures in QueryExecutionFailure."""
    AGGREGATE_QUERIES_TOTAL.inc()
    started = time.perf_counter()
    try:
        rows = await store.aggregate(query)
    except QueryExecutionFailure:
        AGGREGATE_QUERY_FAILURES_TOTAL.inc()
        raise
    except Exception as e:  # noqa: BLE001
        AGGREGATE_QUERY_FAILURES_TOTAL.inc()
        logger.error(
            "aggregation_query_failed",
            extra={"metric": query.metric, "filters": query.filters, "error": str(e)},
        )
        raise QueryExecutionFailure(query.metric, str(e)) from e
    AGGREGATE_QUERY_LATENCY_SECONDS.observe(time.perf_counter() - started)
    return [r if isinstance(r, AggregationRow) else AggregationRow(r) for r in rows]


def sequence_rows(
    rows: Iterable[AggregationRow],
    value_field: str = "count",
    label_field: str = "time",
    limit: Optional[int] = None,
) -> List[MeasurementValue]:
    """Index rows in store order and return them sorted by that index.

    Missing values become 0 and missing labels an empty string. At most
    ``limit`` values are returned.
    """
    values = [
        MeasurementValue(
            value=row.get_int(value_field, 0),
            timestamp=row.get_string(label_field, ""),
            index=index,
        )
        for index, row in enumerate(rows)
    ]
    values.sort(key=lambda v: v.index)
    return values if limit is None else values[:limit]
