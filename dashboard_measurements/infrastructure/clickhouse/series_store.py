"""ClickHouse series store.

Samples live in one MergeTree table keyed by metric name and time; tags are
plain columns. Aggregations bucket with ``toStartOfInterval`` and label the
buckets with ``formatDateTime``. Bucket formats are written in strftime
syntax; ``formatDateTime`` shares most specifiers but spells minutes ``%i``
(``%M`` is the month name since ClickHouse 23.4), so formats are translated
before they are sent. The driver is synchronous, so calls run in a worker
thread.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import clickhouse_connect

from dashboard_measurements.aggregation.query import AggregationQuery
from dashboard_measurements.core.config import settings
from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import AggregationRow, SeriesPoint

logger = get_logger("measurements.store.clickhouse")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FUNCTIONS = {"sum", "count", "max", "min", "avg"}
_SPECIFIER_RE = re.compile(r"%(.)")
# strftime specifier -> formatDateTime specifier, where they differ
_FORMAT_SPECIFIERS = {"M": "i"}

DEFAULT_TAG_COLUMNS = ("productId", "msgType")


def _identifier(name: str) -> str:
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid column name '{name}'")
    return name


def to_clickhouse_format(fmt: str) -> str:
    """Rewrite a strftime format for ``formatDateTime``."""
    return _SPECIFIER_RE.sub(
        lambda m: "%" + _FORMAT_SPECIFIERS.get(m.group(1), m.group(1)), fmt
    )


def create_table_ddl(table: str, tag_columns: Sequence[str]) -> str:
    tags = "".join(f"    {_identifier(c)} LowCardinality(String),\n" for c in tag_columns)
    return (
        f"CREATE TABLE IF NOT EXISTS {_identifier(table)} (\n"
        "    name LowCardinality(String),\n"
        "    timestamp DateTime64(3, 'UTC'),\n"
        f"{tags}"
        "    count UInt64\n"
        ") ENGINE = MergeTree\n"
        "ORDER BY (name, timestamp)"
    )


def render_aggregation(
    table: str, query: AggregationQuery
) -> Tuple[str, Dict[str, Any]]:
    """Render ``query`` as parameterised SQL.

    Aggregates are selected as ``agg_<n>`` so their aliases cannot collide
    with source column names; callers map them back to the query's aliases.
    """
    bucket = f"toStartOfInterval(timestamp, {query.group_by.interval.to_sql()})"
    selects = [f"{bucket} AS bucket", "formatDateTime(bucket, %(format)s) AS label"]
    for i, column in enumerate(query.columns):
        if column.function not in _FUNCTIONS:
            raise ValueError(f"Unsupported aggregation '{column.function}'")
        selects.append(f"{column.function}({_identifier(column.property)}) AS agg_{i}")

    where = [
        "name = %(metric)s",
        "timestamp >= %(from_time)s",
        "timestamp <= %(to_time)s",
    ]
    params: Dict[str, Any] = {
        "metric": query.metric,
        "format": to_clickhouse_format(query.group_by.format),
        "from_time": query.from_time.astimezone(timezone.utc).replace(tzinfo=None),
        "to_time": query.to_time.astimezone(timezone.utc).replace(tzinfo=None),
        "limit": query.limit,
    }
    for i, (field, value) in enumerate(sorted(query.filters.items())):
        where.append(f"{_identifier(field)} = %(filter_{i})s")
        params[f"filter_{i}"] = value

    sql = (
        f"SELECT {', '.join(selects)}\n"
        f"FROM {_identifier(table)}\n"
        f"WHERE {' AND '.join(where)}\n"
        "GROUP BY bucket\n"
        "ORDER BY bucket DESC\n"
        "LIMIT %(limit)s"
    )
    return sql, params


class ClickHouseSeriesStore:
    def __init__(
        self,
        client: Optional[Any] = None,
        table: Optional[str] = None,
        tag_columns: Sequence[str] = DEFAULT_TAG_COLUMNS,
        ensure_table: bool = True,
    ):
        self.table = table or settings.clickhouse_metrics_table
        self.tag_columns = tuple(tag_columns)
        self.client = client or clickhouse_connect.get_client(
            host=settings.clickhouse_host,
            port=settings.clickhouse_port,
            database=settings.clickhouse_db,
            username=settings.clickhouse_user,
            password=settings.clickhouse_password,
            interface="http",
        )
        if ensure_table:
            self.client.command(create_table_ddl(self.table, self.tag_columns))

    async def aggregate(self, query: AggregationQuery) -> List[AggregationRow]:
        sql, params = render_aggregation(self.table, query)
        result = await asyncio.to_thread(self.client.query, sql, parameters=params)
        rows = []
        for raw in result.result_rows:
            row: Dict[str, Any] = {query.group_by.alias: raw[1]}
            for i, column in enumerate(query.columns):
                row[column.alias] = raw[2 + i]
            rows.append(AggregationRow(row))
        logger.debug(
            "clickhouse_aggregation_fetched",
            extra={"metric": query.metric, "rows": len(rows)},
        )
        return rows

    async def save(self, points: Iterable[SeriesPoint]) -> None:
        data = [
            [
                p.metric,
                datetime.fromtimestamp(p.timestamp / 1000, tz=timezone.utc),
                *(p.tags.get(c, "") for c in self.tag_columns),
                p.count,
            ]
            for p in points
        ]
        if not data:
            return
        columns = ["name", "timestamp", *self.tag_columns, "count"]
        await asyncio.to_thread(self.client.insert, self.table, data, column_names=columns)
        logger.debug("clickhouse_points_inserted", extra={"count": len(data)})

    def close(self) -> None:
        try:
            self.client.close()
        except Exception as e:  # noqa: BLE001
            logger.warning("clickhouse_close_failed", extra={"error": str(e)})
