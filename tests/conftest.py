import asyncio
from datetime import datetime, timezone

import pytest

from dashboard_measurements.domain.models import DeviceMessage
from dashboard_measurements.infrastructure.memory import (
    InMemoryMessageBus,
    InMemorySeriesStore,
)


@pytest.fixture
def bus() -> InMemoryMessageBus:
    return InMemoryMessageBus()


@pytest.fixture
def store() -> InMemorySeriesStore:
    return InMemorySeriesStore()


@pytest.fixture
def fixed_now() -> datetime:
    """2026-05-01 12:00 UTC."""
    return datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_message():
    def _make(
        product_id: str = "p1",
        device_id: str = "d1",
        message_type: str = "REPORT_PROPERTY",
    ) -> DeviceMessage:
        return DeviceMessage(
            topic=f"/device/{product_id}/{device_id}/message/{message_type.lower()}",
            device_id=device_id,
            product_id=product_id,
            message_type=message_type,
            timestamp=1_710_000_000_000,
        )

    return _make


@pytest.fixture
def wait_for_subscribers():
    """Yield to the loop until the bus holds ``count`` subscriptions."""

    async def _wait(bus: InMemoryMessageBus, count: int = 1) -> None:
        for _ in range(400):
            if bus.subscriber_count >= count:
                return
            await asyncio.sleep(0.005)
        raise AssertionError(
            f"expected {count} subscribers, got {bus.subscriber_count}"
        )

    return _wait
