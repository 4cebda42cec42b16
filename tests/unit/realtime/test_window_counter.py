import asyncio
from datetime import timedelta

import pytest
from prometheus_client import REGISTRY

from dashboard_measurements.domain.errors import UpstreamSubscriptionFailure
from dashboard_measurements.realtime.window_counter import WindowCounter

ACTIVE_GAUGE = "measurements_realtime_active_subscriptions"


async def _next(stream):
    return await stream.__anext__()


def _active_subscriptions() -> float:
    return REGISTRY.get_sample_value(ACTIVE_GAUGE) or 0.0


@pytest.mark.asyncio
async def test_counts_window_then_emits_zero_for_empty_window(
    bus, make_message, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/**", clock=lambda: 42)
    stream = counter.stream(timedelta(milliseconds=200))

    first = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    for _ in range(5):
        bus.publish(make_message())

    value = await first
    assert value.value == 5
    assert value.timestamp == 42
    assert value.index is None

    second = await _next(stream)
    assert second.value == 0

    await stream.aclose()
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_message_is_counted_in_exactly_one_window(
    bus, make_message, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/**")
    stream = counter.stream(timedelta(milliseconds=150))

    first = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    bus.publish(make_message())
    bus.publish(make_message())
    assert (await first).value == 2

    second = asyncio.create_task(_next(stream))
    await asyncio.sleep(0)
    for _ in range(3):
        bus.publish(make_message())
    assert (await second).value == 3

    await stream.aclose()


@pytest.mark.asyncio
async def test_slow_consumer_gets_per_window_counts(
    bus, make_message, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/**")
    stream = counter.stream(timedelta(milliseconds=200))

    first = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    bus.publish(make_message())
    assert (await first).value == 1

    # Nothing is read while windows two and three run.
    for _ in range(2):
        bus.publish(make_message())
    await asyncio.sleep(0.25)
    for _ in range(3):
        bus.publish(make_message())
    await asyncio.sleep(0.25)

    assert [(await _next(stream)).value for _ in range(2)] == [2, 3]
    await stream.aclose()
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_only_matching_topics_are_counted(
    bus, make_message, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/p1/**")
    stream = counter.stream(timedelta(milliseconds=150))

    first = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    bus.publish(make_message(product_id="p1"))
    bus.publish(make_message(product_id="p2"))

    assert (await first).value == 1
    await stream.aclose()


@pytest.mark.asyncio
async def test_each_stream_has_its_own_subscription(
    bus, make_message, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/**")
    a = counter.stream(timedelta(milliseconds=150))
    b = counter.stream(timedelta(milliseconds=300))

    first_a = asyncio.create_task(_next(a))
    first_b = asyncio.create_task(_next(b))
    await wait_for_subscribers(bus, 2)
    for _ in range(3):
        bus.publish(make_message())

    assert (await first_a).value == 3
    assert (await first_b).value == 3

    await a.aclose()
    assert bus.subscriber_count == 1
    await b.aclose()
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_bus_failure_terminates_stream_with_upstream_error(
    bus, wait_for_subscribers
):
    counter = WindowCounter(bus, "device/**")
    stream = counter.stream(timedelta(seconds=30))

    pending = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    bus.close(RuntimeError("broker down"))

    with pytest.raises(UpstreamSubscriptionFailure) as exc_info:
        await asyncio.wait_for(pending, timeout=2)

    assert "broker down" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_bus_close_terminates_stream(bus, wait_for_subscribers):
    counter = WindowCounter(bus, "device/**")
    stream = counter.stream(timedelta(seconds=30))

    pending = asyncio.create_task(_next(stream))
    await wait_for_subscribers(bus)
    bus.close()

    with pytest.raises(UpstreamSubscriptionFailure, match="closed"):
        await asyncio.wait_for(pending, timeout=2)


@pytest.mark.asyncio
async def test_cancelling_consumer_releases_subscription(bus, wait_for_subscribers):
    counter = WindowCounter(bus, "device/**")
    before = _active_subscriptions()

    async def consume():
        async for _ in counter.stream(timedelta(seconds=30)):
            pass

    task = asyncio.create_task(consume())
    await wait_for_subscribers(bus)
    assert _active_subscriptions() == before + 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert bus.subscriber_count == 0
    assert _active_subscriptions() == before


@pytest.mark.asyncio
async def test_non_positive_interval_rejected(bus):
    counter = WindowCounter(bus, "device/**")

    with pytest.raises(ValueError):
        await _next(counter.stream(timedelta(0)))

    assert bus.subscriber_count == 0
