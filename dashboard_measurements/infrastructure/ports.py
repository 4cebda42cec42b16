"""Boundaries to the message bus and the series store.

Dimensions depend only on these protocols; the adapters under
``infrastructure`` implement them for in-memory use, Kafka, Redis pub/sub and
ClickHouse.
"""

from __future__ import annotations

from typing import AsyncIterator, Iterable, Protocol, Sequence, runtime_checkable

from dashboard_measurements.domain.models import AggregationRow, DeviceMessage, SeriesPoint


@runtime_checkable
class Subscription(Protocol):
    """An open, unbounded stream of bus messages."""

    def __aiter__(self) -> AsyncIterator[DeviceMessage]: ...

    async def __anext__(self) -> DeviceMessage: ...

    async def aclose(self) -> None:
        """Release the underlying subscription."""
        ...


@runtime_checkable
class MessageBus(Protocol):
    def subscribe(self, pattern: str) -> Subscription:
        """Subscribe to every topic matching ``pattern`` (e.g. ``device/**``).

        Iteration raises if the transport fails and stops when the bus closes.
        """
        ...


@runtime_checkable
class SeriesStore(Protocol):
    async def aggregate(self, query) -> Sequence[AggregationRow]:
        """Execute an ``AggregationQuery`` and return its rows."""
        ...

    async def save(self, points: Iterable[SeriesPoint]) -> None:
        """Persist counted samples."""
        ...
